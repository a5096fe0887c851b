"""Common helpers shared by the movementprofiler modules."""

import os

import jinja2

ROOT_PREFIX = 'root.'
OTHER_GROUP = 'Other'


class MovementProfilerError(Exception):
    """
    Base exception for analysis failures.

    Attributes:
        message: Human-readable error description
        context: Optional context about where the error occurred
    """

    def __init__(self, message: str, context: str | None = None):
        self.message = message
        self.context = context
        super().__init__(f"{message} (context: {context})" if context else message)


def percent(part: float, whole: float) -> str:
    """Formats ``part / whole`` with one decimal, e.g. ``60.0%``. A zero denominator yields ``0.0%``."""
    if not whole:
        return f"{0.0:.1%}"
    return f"{part / whole:.1%}"


def display_path(path: str) -> str:
    """Strips the synthetic ``root.`` prefix from a field path."""
    if path.startswith(ROOT_PREFIX):
        return path[len(ROOT_PREFIX):]
    return path


def top_level_property(path: str) -> str:
    """
    Returns the top-level property a field path belongs to.

    ``root.jobInfo.salary`` and ``root.jobInfo[]`` both belong to ``jobInfo``.
    Paths outside ``root.`` fall into the ``Other`` group.
    """
    if not path.startswith(ROOT_PREFIX):
        return OTHER_GROUP
    segment = path[len(ROOT_PREFIX):].split('.', 1)[0]
    segment = segment.split('[', 1)[0]
    return segment or OTHER_GROUP


def process_template(file_path: str, **kvargs) -> str:
    """
    Process a file as a Jinja2 template with the given object as input.

    Args:
        file_path (str): The template path, relative to the package directory.
        **kvargs: The keyword arguments to pass to the template.

    Returns:
        str: The processed template as a string.
    """
    file_dir = os.path.dirname(__file__)
    template_loader = jinja2.FileSystemLoader(searchpath=file_dir)
    template_env = jinja2.Environment(loader=template_loader, trim_blocks=True,
                                      lstrip_blocks=True, keep_trailing_newline=True)
    template_env.filters['percent'] = percent

    template = template_env.get_template(file_path)
    return template.render(**kvargs)


def write_text(output: str, text: str):
    """Writes text to a file, creating the directory if needed."""
    output_dir = os.path.dirname(output)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        f.write(text)
