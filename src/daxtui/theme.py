from dataclasses import dataclass


@dataclass(frozen=True)
class Theme:
    """Colour names, as understood by blessed (e.g. `term.bright_black`)."""
    text: str = 'white'
    dim: str = 'bright_black'
    border: str = 'bright_black'
    accent: str = 'cyan'
    success: str = 'green'
    warning: str = 'yellow'
    error: str = 'red'
    user: str = 'bright_blue'
    assistant: str = 'bright_green'


DEFAULT_THEME = Theme()
