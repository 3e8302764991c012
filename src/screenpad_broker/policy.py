from __future__ import annotations

from dataclasses import dataclass

from screenpad_broker import brightness


@dataclass(frozen=True)
class Decision:
    brightness: int | None
    why: str

    @property
    def changes(self) -> bool:
        return self.brightness is not None


def decide_toggle(current: int, slider: float) -> Decision:
    """Toggle key: switch off when on, else on at the slider's level."""

    if current == brightness.OFF:
        return Decision(brightness=brightness.from_slider(slider), why="toggle_on")
    return Decision(brightness=brightness.OFF, why="toggle_off")


def decide_slider(current: int, slider: float) -> Decision:
    # Moving the main slider never switches a dark Screenpad back on.
    if current == brightness.OFF:
        return Decision(brightness=None, why="screenpad_off")
    target = brightness.from_slider(slider)
    if target == current:
        return Decision(brightness=None, why="unchanged")
    return Decision(brightness=target, why="follow_slider")


_SCREENSHOT_ARGS: dict[str, list[str]] = {
    "Screen": [],
    "Window": ["--window"],
    "Selection": ["--area"],
    "Interactive": ["--interactive"],
}


def screenshot_command(screenshot_type: str, include_cursor: bool) -> list[str]:
    if screenshot_type not in _SCREENSHOT_ARGS:
        raise ValueError(f"unknown screenshot type: {screenshot_type}")
    cmd = ["gnome-screenshot", *_SCREENSHOT_ARGS[screenshot_type]]
    if include_cursor:
        cmd.append("--include-pointer")
    return cmd


def myasus_command(shell_cmd: str) -> list[str] | None:
    """The MyASUS key runs a user-configured shell command, if any."""

    shell_cmd = shell_cmd.strip()
    if not shell_cmd:
        return None
    return ["sh", "-c", shell_cmd]
