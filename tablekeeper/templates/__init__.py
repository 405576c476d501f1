"""Email template management for Tablekeeper notifications."""

from pathlib import Path

TEMPLATE_DIR = Path(__file__).parent


def load_template(name: str, **kwargs) -> str:
    """Load and format an email template.

    Args:
        name: Template file name including extension (e.g. "confirmation.html")
        **kwargs: Variables to substitute in the template

    Returns:
        Formatted template string

    Example:
        >>> load_template("rejection.txt",
        ...     restaurant_name="Madot Restaurant",
        ...     guest_name="Jane Doe",
        ...     date="Sunday, June 1, 2025",
        ...     time="19:00")
    """
    template_file = TEMPLATE_DIR / name

    if not template_file.exists():
        raise FileNotFoundError(f"Email template not found: {template_file}")

    template = template_file.read_text(encoding="utf-8")
    return template.format(**kwargs)


__all__ = ["load_template"]
