"""Native file and folder pickers used by the open/save operations."""

import logging
import os
import subprocess
import sys
from typing import List, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


def _applescript_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _powershell_string(value: str) -> str:
    # Single quotes disable interpolation; a literal quote is doubled
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


class Picker(Protocol):
    """Resolves a user's choice to an absolute path, or None if dismissed."""

    def pick_file(self, extensions: Sequence[str]) -> Optional[str]:
        ...

    def pick_folder(self) -> Optional[str]:
        ...

    def save_file(self, default_name: str, extensions: Sequence[str]) -> Optional[str]:
        ...


class StaticPicker:
    """Picker answering with preset paths; None means the dialog was dismissed."""

    def __init__(
        self,
        file_path: Optional[str] = None,
        folder_path: Optional[str] = None,
        save_path: Optional[str] = None,
    ):
        self.file_path = file_path
        self.folder_path = folder_path
        self.save_path = save_path
        self.requests: List[tuple] = []

    def pick_file(self, extensions: Sequence[str]) -> Optional[str]:
        self.requests.append(("file", tuple(extensions)))
        return self.file_path

    def pick_folder(self) -> Optional[str]:
        self.requests.append(("folder",))
        return self.folder_path

    def save_file(self, default_name: str, extensions: Sequence[str]) -> Optional[str]:
        self.requests.append(("save", default_name, tuple(extensions)))
        return self.save_path


class NativeDialogPicker:
    """
    Shows the platform's own dialogs by shelling out.

    macOS uses osascript, Windows uses PowerShell with WinForms, Linux tries
    zenity then kdialog. A missing tool, a timeout or a non-zero exit status
    all count as a dismissed dialog.
    """

    def __init__(self, timeout: float = 120.0, platform: Optional[str] = None):
        self.timeout = timeout
        self.platform = platform or sys.platform

    def _run(self, command: List[str]) -> Optional[str]:
        return self._run_first([command])

    def _run_first(self, commands: List[List[str]]) -> Optional[str]:
        for command in commands:
            try:
                result = subprocess.run(command, capture_output=True, text=True, timeout=self.timeout)
            except FileNotFoundError:
                continue
            except subprocess.TimeoutExpired:
                logger.warning(f"Picker timed out after {self.timeout}s: {command[0]}")
                return None
            if result.returncode == 0 and result.stdout.strip():
                return result.stdout.strip()
            return None
        tried = ", ".join(c[0] for c in commands)
        logger.warning(f"No dialog tool available (tried {tried})")
        return None

    def pick_file(self, extensions: Sequence[str]) -> Optional[str]:
        if self.platform == "darwin":
            types = ", ".join(_applescript_string(ext) for ext in extensions)
            script = f'''
                set chosenFile to choose file with prompt "Open a document:" of type {{{types}}}
                return POSIX path of chosenFile
            '''
            return self._run(["osascript", "-e", script])
        if self.platform == "win32":
            patterns = ";".join(f"*.{ext}" for ext in extensions)
            script = f'''
            Add-Type -AssemblyName System.Windows.Forms
            $dialog = New-Object System.Windows.Forms.OpenFileDialog
            $dialog.Filter = "Markdown ({patterns})|{patterns}"
            if ($dialog.ShowDialog() -eq "OK") {{
                Write-Output $dialog.FileName
            }}
            '''
            return self._run(["powershell", "-Command", script])
        patterns = " ".join(f"*.{ext}" for ext in extensions)
        return self._run_first([
            ["zenity", "--file-selection", "--title=Open a document", f"--file-filter=Markdown | {patterns}"],
            ["kdialog", "--getopenfilename", os.path.expanduser("~"), patterns, "--title", "Open a document"],
        ])

    def pick_folder(self) -> Optional[str]:
        if self.platform == "darwin":
            script = '''
                set chosenFolder to choose folder with prompt "Open a folder:"
                return POSIX path of chosenFolder
            '''
            return self._run(["osascript", "-e", script])
        if self.platform == "win32":
            script = '''
            Add-Type -AssemblyName System.Windows.Forms
            $folderBrowser = New-Object System.Windows.Forms.FolderBrowserDialog
            $folderBrowser.Description = "Open a folder"
            if ($folderBrowser.ShowDialog() -eq "OK") {
                Write-Output $folderBrowser.SelectedPath
            }
            '''
            return self._run(["powershell", "-Command", script])
        return self._run_first([
            ["zenity", "--file-selection", "--directory", "--title=Open a folder"],
            ["kdialog", "--getexistingdirectory", os.path.expanduser("~"), "--title", "Open a folder"],
        ])

    def save_file(self, default_name: str, extensions: Sequence[str]) -> Optional[str]:
        if self.platform == "darwin":
            script = f'''
                set chosenFile to choose file name with prompt "Save document as:" default name {_applescript_string(default_name)}
                return POSIX path of chosenFile
            '''
            return self._run(["osascript", "-e", script])
        if self.platform == "win32":
            patterns = ";".join(f"*.{ext}" for ext in extensions)
            script = f'''
            Add-Type -AssemblyName System.Windows.Forms
            $dialog = New-Object System.Windows.Forms.SaveFileDialog
            $dialog.FileName = {_powershell_string(default_name)}
            $dialog.Filter = "Markdown ({patterns})|{patterns}"
            if ($dialog.ShowDialog() -eq "OK") {{
                Write-Output $dialog.FileName
            }}
            '''
            return self._run(["powershell", "-Command", script])
        start = os.path.join(os.path.expanduser("~"), default_name)
        return self._run_first([
            ["zenity", "--file-selection", "--save", "--confirm-overwrite", f"--filename={start}", "--title=Save document as"],
            ["kdialog", "--getsavefilename", start, "--title", "Save document as"],
        ])
