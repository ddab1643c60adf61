"""Core domain types and logic."""

from .config import (
    CONFIG_FILE_NAME,
    ConfigError,
    RepoConfig,
    WorkspaceConfig,
    load_config_file,
    render_config,
    write_config,
)
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok
from .workspace import (
    ConfigSource,
    Workspace,
    WorkspaceError,
    collect_all_configs,
    declared_repos,
    detect_workspace,
    find_workspace_root,
)

__all__ = [
    # config
    "CONFIG_FILE_NAME",
    "ConfigError",
    "RepoConfig",
    "WorkspaceConfig",
    "load_config_file",
    "render_config",
    "write_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
    # workspace
    "ConfigSource",
    "Workspace",
    "WorkspaceError",
    "collect_all_configs",
    "declared_repos",
    "detect_workspace",
    "find_workspace_root",
]
