"""A file system wrapper that logs every operation and its outcome."""

from __future__ import annotations

import logging
from typing import Any, Callable

from .error_mapping import FILE_SYSTEM_OPERATIONS

_logger = logging.getLogger("bucketinode.debug_fs")

__all__ = ["DebugLogging", "FILE_SYSTEM_OPERATIONS", "with_debug_logging"]


def _describe_args(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    parts = [repr(a) for a in args]
    parts.extend(f"{key}={value!r}" for key, value in kwargs.items())
    return ", ".join(parts)


def _logged(op_name: str) -> Callable[..., Any]:
    def method(self: DebugLogging, *args: Any, **kwargs: Any) -> Any:
        return self._call(op_name, *args, **kwargs)

    method.__name__ = op_name
    method.__doc__ = f"Call ``{op_name}`` on the wrapped file system and log it."
    return method


class DebugLogging:
    """Wraps a file system, logging each operation's arguments and error.

    Messages go to the ``bucketinode.debug_fs`` logger at debug level, in the
    form ``debug_fs: op(args): error``, where the error is ``None`` on success.
    Results and errors pass through unchanged.
    """

    def __init__(self, wrapped: Any, logger: logging.Logger = _logger) -> None:
        self._wrapped = wrapped
        self._logger = logger

    def _call(self, op_name: str, *args: Any, **kwargs: Any) -> Any:
        described = _describe_args(args, kwargs)
        try:
            result = getattr(self._wrapped, op_name)(*args, **kwargs)
        except Exception as err:
            self._logger.debug("debug_fs: %s(%s): %s", op_name, described, err)
            raise
        self._logger.debug("debug_fs: %s(%s): %s", op_name, described, None)
        return result

    def destroy(self) -> None:
        """Destroy the wrapped file system."""
        self._wrapped.destroy()

    stat_fs = _logged("stat_fs")
    look_up_inode = _logged("look_up_inode")
    get_inode_attributes = _logged("get_inode_attributes")
    set_inode_attributes = _logged("set_inode_attributes")
    forget_inode = _logged("forget_inode")
    mk_dir = _logged("mk_dir")
    mk_node = _logged("mk_node")
    create_file = _logged("create_file")
    create_link = _logged("create_link")
    create_symlink = _logged("create_symlink")
    rename = _logged("rename")
    rm_dir = _logged("rm_dir")
    unlink = _logged("unlink")
    open_dir = _logged("open_dir")
    read_dir = _logged("read_dir")
    release_dir_handle = _logged("release_dir_handle")
    open_file = _logged("open_file")
    read_file = _logged("read_file")
    write_file = _logged("write_file")
    sync_file = _logged("sync_file")
    flush_file = _logged("flush_file")
    release_file_handle = _logged("release_file_handle")
    read_symlink = _logged("read_symlink")
    remove_xattr = _logged("remove_xattr")
    get_xattr = _logged("get_xattr")
    list_xattr = _logged("list_xattr")
    set_xattr = _logged("set_xattr")
    fallocate = _logged("fallocate")


def with_debug_logging(wrapped: Any) -> DebugLogging:
    """Wrap a file system so that each operation is logged at debug level."""
    return DebugLogging(wrapped)