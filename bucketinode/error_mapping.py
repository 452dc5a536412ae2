"""Translate file system errors into errno values a FUSE kernel understands."""

from __future__ import annotations

import asyncio
import concurrent.futures
import errno
import logging
import os
from typing import Any, Callable, Iterator, Optional

from .back_object import NotFoundError

FILE_SYSTEM_OPERATIONS = (
    "stat_fs",
    "look_up_inode",
    "get_inode_attributes",
    "set_inode_attributes",
    "forget_inode",
    "mk_dir",
    "mk_node",
    "create_file",
    "create_link",
    "create_symlink",
    "rename",
    "rm_dir",
    "unlink",
    "open_dir",
    "read_dir",
    "release_dir_handle",
    "open_file",
    "read_file",
    "write_file",
    "sync_file",
    "flush_file",
    "release_file_handle",
    "read_symlink",
    "remove_xattr",
    "get_xattr",
    "list_xattr",
    "set_xattr",
    "fallocate",
)

_CANCELLED = (asyncio.CancelledError, concurrent.futures.CancelledError)

_logger = logging.getLogger(__name__)


def _chain(err: BaseException) -> Iterator[BaseException]:
    """The error followed by the errors it was raised from or during."""
    seen: set[int] = set()
    current: Optional[BaseException] = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def to_errno(err: Optional[BaseException]) -> Optional[int]:
    """The errno value standing for ``err``, or None if there is no error."""
    if err is None:
        return None
    chain = list(_chain(err))

    for e in chain:
        if isinstance(e, OSError) and isinstance(e.errno, int):
            return e.errno

    if any(isinstance(e, _CANCELLED) for e in chain):
        return errno.EINTR
    if any(isinstance(e, NotFoundError) for e in chain):
        return errno.ENOENT

    messages = [str(e) for e in chain]
    if any("net/http: request canceled" in m for m in messages):
        return errno.ECANCELED
    if any("oauth2: cannot fetch token" in m for m in messages):
        return errno.EACCES

    for e in chain:
        code = getattr(e, "code", None)
        if isinstance(code, int) and not isinstance(code, bool):
            if code == 403:
                return errno.EACCES
            if code == 404:
                return errno.ENOENT
            break

    return errno.EIO


def _mapped(op_name: str) -> Callable[..., Any]:
    def method(self: ErrorMapping, *args: Any, **kwargs: Any) -> Any:
        return self._call(op_name, *args, **kwargs)

    method.__name__ = op_name
    method.__doc__ = f"Call ``{op_name}`` on the wrapped file system, mapping errors."
    return method


class ErrorMapping:
    """Wraps a file system so that every failing operation raises OSError.

    The raised error carries an errno from ``to_errno``; the original error
    is logged and kept as its cause.
    """

    def __init__(self, wrapped: Any) -> None:
        self._wrapped = wrapped

    def _call(self, op_name: str, *args: Any, **kwargs: Any) -> Any:
        try:
            return getattr(self._wrapped, op_name)(*args, **kwargs)
        except Exception as err:
            code = to_errno(err)
            if isinstance(err, OSError) and err.errno == code:
                raise
            fs_err = OSError(code, os.strerror(code))
            _logger.error("%s: %s, %s", op_name, fs_err, err)
            raise fs_err from err

    def destroy(self) -> None:
        """Destroy the wrapped file system."""
        self._wrapped.destroy()

    stat_fs = _mapped("stat_fs")
    look_up_inode = _mapped("look_up_inode")
    get_inode_attributes = _mapped("get_inode_attributes")
    set_inode_attributes = _mapped("set_inode_attributes")
    forget_inode = _mapped("forget_inode")
    mk_dir = _mapped("mk_dir")
    mk_node = _mapped("mk_node")
    create_file = _mapped("create_file")
    create_link = _mapped("create_link")
    create_symlink = _mapped("create_symlink")
    rename = _mapped("rename")
    rm_dir = _mapped("rm_dir")
    unlink = _mapped("unlink")
    open_dir = _mapped("open_dir")
    read_dir = _mapped("read_dir")
    release_dir_handle = _mapped("release_dir_handle")
    open_file = _mapped("open_file")
    read_file = _mapped("read_file")
    write_file = _mapped("write_file")
    sync_file = _mapped("sync_file")
    flush_file = _mapped("flush_file")
    release_file_handle = _mapped("release_file_handle")
    read_symlink = _mapped("read_symlink")
    remove_xattr = _mapped("remove_xattr")
    get_xattr = _mapped("get_xattr")
    list_xattr = _mapped("list_xattr")
    set_xattr = _mapped("set_xattr")
    fallocate = _mapped("fallocate")


def with_error_mapping(wrapped: Any) -> ErrorMapping:
    """Wrap a file system so its errors become errno-carrying OSErrors."""
    return ErrorMapping(wrapped)