"""GitHub Copilot adapter: the VS Code layout under `.github`, detected through `.vscode`."""

from __future__ import annotations

from aix.editors.adapters.vscode import VSCodeAdapter


class CopilotAdapter(VSCodeAdapter):
    name = "copilot"
