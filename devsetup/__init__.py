"""devsetup: idempotent developer-shell provisioning for Debian/Ubuntu.

Two recipes, each an ordered list of steps:
- nvim: Neovim config tree, CLI tools, language providers, C toolchain
- zsh: Zsh, Oh My Zsh, plugins, Powerlevel10k, .zshrc edits, login shell

Every step checks before it acts, so re-running a recipe is safe.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
