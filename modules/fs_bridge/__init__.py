"""
FsBridge filesystem operations.

Copy, move, merge and delete trees across filesystem handles; set
permissions, extract archives and replace files on the local disk.
"""

from .model import FsPath, FsAction, Permission, FileStatus, stat_to_paths
from .handles import FilesystemHandle, LocalFilesystem, same_backend
from .destination import resolve_destination
from .copier import TreeCopier
from .deleter import TreeDeleter
from .permissions import PermissionSetter, PermissionCapabilities, AttributeCall
from .archives import ArchiveExtractor
from .replace import AtomicReplacer
from .local_ops import disk_usage, list_files, list_names, create_local_temp_file, sym_link

__all__ = [
    'FsPath', 'FsAction', 'Permission', 'FileStatus', 'stat_to_paths',
    'FilesystemHandle', 'LocalFilesystem', 'same_backend',
    'resolve_destination',
    'TreeCopier',
    'TreeDeleter',
    'PermissionSetter', 'PermissionCapabilities', 'AttributeCall',
    'ArchiveExtractor',
    'AtomicReplacer',
    'disk_usage', 'list_files', 'list_names', 'create_local_temp_file', 'sym_link',
]
