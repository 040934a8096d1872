from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_CONFIG_PATH = "~/.config/devsetup/config.yaml"

# (apt package, command it provides, why nvim wants it)
DEFAULT_NVIM_TOOLS: List[Dict[str, str]] = [
    {"package": "ripgrep", "command": "rg", "purpose": "Telescope live_grep"},
    {"package": "fd-find", "command": "fd", "purpose": "Telescope file finding"},
    {"package": "unzip", "command": "unzip", "purpose": "Mason package extraction"},
    {"package": "gzip", "command": "gzip", "purpose": "Mason package compression"},
    {"package": "wget", "command": "wget", "purpose": "Mason downloads"},
    {"package": "curl", "command": "curl", "purpose": "downloads"},
    {"package": "git", "command": "git", "purpose": "version control"},
]

DEFAULT_COMPILER_PACKAGES = ["build-essential", "gcc", "g++", "make", "cmake"]

DEFAULT_ZSH_PLUGINS: List[Dict[str, Any]] = [
    {"name": "zsh-autosuggestions", "url": "https://github.com/zsh-users/zsh-autosuggestions"},
    {"name": "zsh-syntax-highlighting", "url": "https://github.com/zsh-users/zsh-syntax-highlighting.git"},
]

DEFAULT_ZSH_ALIASES = {
    "ll": "ls -ltra",
    "gd": "git diff",
    "gcmsg": "git commit -m",
    "gitc": "git checkout",
    "gitm": "git checkout master",
}

OHMYZSH_INSTALL_URL = "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
P10K_URL = "https://github.com/romkatv/powerlevel10k.git"


@dataclass(frozen=True)
class Tool:
    package: str
    command: str
    purpose: str = ""


@dataclass(frozen=True)
class Plugin:
    name: str
    url: str
    depth: Optional[int] = None


@dataclass(frozen=True)
class SetupConfig:
    """User overrides layered over built-in defaults.

    `home` is where every ~-relative default is anchored; tests point it at
    a temp dir.
    """

    raw: Dict[str, Any] = field(default_factory=dict)
    home: Path = field(default_factory=Path.home)

    def _section(self, name: str) -> Dict[str, Any]:
        sec = self.raw.get(name) or {}
        if not isinstance(sec, dict):
            raise ValueError(f"config section '{name}' must be a mapping")
        return sec

    def _expand(self, value: str) -> Path:
        if value.startswith("~"):
            return self.home / value[1:].lstrip("/")
        return Path(value)

    # -- nvim --

    @property
    def nvim_config_dir(self) -> Path:
        return self._expand(str(self._section("nvim").get("config_dir") or "~/.config/nvim"))

    @property
    def nvim_tools(self) -> List[Tool]:
        items = self._section("nvim").get("tools") or DEFAULT_NVIM_TOOLS
        return [Tool(package=str(t["package"]), command=str(t["command"]), purpose=str(t.get("purpose") or "")) for t in items]

    @property
    def compiler_packages(self) -> List[str]:
        return [str(p) for p in (self._section("nvim").get("compiler_packages") or DEFAULT_COMPILER_PACKAGES)]

    # -- zsh --

    @property
    def ohmyzsh_dir(self) -> Path:
        return self._expand(str(self._section("zsh").get("ohmyzsh_dir") or "~/.oh-my-zsh"))

    @property
    def zsh_custom_dir(self) -> Path:
        value = self._section("zsh").get("custom_dir") or os.environ.get("ZSH_CUSTOM")
        if value:
            return self._expand(str(value))
        return self.ohmyzsh_dir / "custom"

    @property
    def zshrc_path(self) -> Path:
        return self.home / ".zshrc"

    @property
    def zsh_theme(self) -> str:
        return str(self._section("zsh").get("theme") or "powerlevel10k/powerlevel10k")

    @property
    def zsh_plugins(self) -> List[Plugin]:
        items = self._section("zsh").get("plugins") or DEFAULT_ZSH_PLUGINS
        return [Plugin(name=str(p["name"]), url=str(p["url"]), depth=p.get("depth")) for p in items]

    @property
    def zsh_enabled_plugins(self) -> List[str]:
        return ["git", *[p.name for p in self.zsh_plugins]]

    @property
    def zsh_aliases(self) -> Dict[str, str]:
        aliases = self._section("zsh").get("aliases") or DEFAULT_ZSH_ALIASES
        return {str(k): str(v) for k, v in aliases.items()}

    @property
    def ohmyzsh_install_url(self) -> str:
        return str(self._section("zsh").get("ohmyzsh_install_url") or OHMYZSH_INSTALL_URL)

    @property
    def p10k_url(self) -> str:
        return str(self._section("zsh").get("p10k_url") or P10K_URL)


def load_setup_config(path: Optional[str], *, home: Optional[Path] = None) -> SetupConfig:
    """Load overrides from YAML.

    An explicit path must exist; the default path is optional.
    """

    home = home or Path.home()
    if path:
        p = Path(path).expanduser()
        if not p.exists():
            raise FileNotFoundError(path)
    else:
        p = home / DEFAULT_CONFIG_PATH[2:]
        if not p.exists():
            return SetupConfig(raw={}, home=home)

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p} must contain a mapping/object")

    return SetupConfig(raw=raw, home=home)
