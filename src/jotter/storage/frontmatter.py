"""Front matter parsing and writing for journal Markdown files.

The header is a flat block of ``key: value`` lines between two ``---``
lines. It is not YAML: values are kept as raw strings and
split on the first colon only, so a value may itself contain colons.
"""

from collections.abc import Mapping

DELIMITER = "---"


def split_lines(content: str) -> list[str]:
    """Split on newlines, keeping a trailing empty line if present."""
    return content.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def parse_frontmatter(content: str) -> tuple[dict[str, str], list[str]]:
    """
    Parse the front matter block from file content.

    The first ``---`` line opens the block and the next one closes it. If no
    closed block exists the whole content is treated as body.

    Args:
        content: Full file content

    Returns:
        (fields, body_lines) - Raw string fields and the lines after the block
    """
    lines = split_lines(content)
    fields: dict[str, str] = {}
    in_block = False

    for index, line in enumerate(lines):
        if line.strip() == DELIMITER:
            if in_block:
                return fields, lines[index + 1 :]
            in_block = True
        elif in_block and ":" in line:
            key, value = line.split(":", 1)
            fields[key.strip()] = value.strip()

    return {}, lines


def write_frontmatter(fields: Mapping[str, object | None]) -> str:
    """
    Write fields as a front matter block.

    None values are omitted.

    Returns:
        Front matter string with ``---`` delimiters and a trailing newline
    """
    lines = [DELIMITER]
    lines.extend(
        f"{key}: {value}" for key, value in fields.items() if value is not None
    )
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n"
