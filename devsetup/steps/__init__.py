from .nvim_steps import (
    CheckCompilerStep,
    FixConfigStep,
    InstallCompilerStep,
    InstallProvidersStep,
    InstallToolsStep,
    SetupConfigStep,
    ShowCompilerInfoStep,
)
from .zsh_steps import (
    ConfigureZshrcStep,
    InstallOhMyZshStep,
    InstallPluginsStep,
    InstallPowerlevel10kStep,
    InstallZshStep,
    SetDefaultShellStep,
)

__all__ = [
    "ShowCompilerInfoStep",
    "SetupConfigStep",
    "FixConfigStep",
    "InstallToolsStep",
    "InstallProvidersStep",
    "InstallCompilerStep",
    "CheckCompilerStep",
    "InstallZshStep",
    "InstallOhMyZshStep",
    "InstallPluginsStep",
    "InstallPowerlevel10kStep",
    "ConfigureZshrcStep",
    "SetDefaultShellStep",
]
