"""
React Component Export
Wraps ASCII art in a self-contained .tsx component that can be pasted into any
React project (Tailwind classes for the monospace <pre> block).

Static:   export function Name() { const art = `...`; ... }
Animated: frames array + useState index + setInterval(round(1000 / fps))

Art is embedded in template literals, so backslashes, backticks and "${" are
escaped. Output is deterministic for a given input.
"""

import re

from ascii_art import round_half_up
from ascii_errors import InvalidArgumentError

PRE_CLASSES = "font-mono text-xs leading-none whitespace-pre"

DEFAULT_COMPONENT_NAME = "AsciiArt"


def escape_template_literal(text):
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


def component_name_for(filename):
    """Derive a component name from an uploaded file name ("my cat.png" -> "mycatAscii")."""
    if not filename:
        return DEFAULT_COMPONENT_NAME
    stem = re.sub(r"\.[^/.]+$", "", filename)
    stem = re.sub(r"[^a-zA-Z0-9]", "", stem)
    if not stem:
        return DEFAULT_COMPONENT_NAME
    if stem[0].isdigit():
        stem = "Ascii" + stem
    return stem + "Ascii"


def generate_react_component(ascii_art, component_name=DEFAULT_COMPONENT_NAME):
    art = escape_template_literal(ascii_art)
    return (
        f"export function {component_name}() {{\n"
        f"  const art = `{art}`;\n"
        "\n"
        "  return (\n"
        f'    <pre className="{PRE_CLASSES}">\n'
        "      {art}\n"
        "    </pre>\n"
        "  );\n"
        "}\n"
    )


def generate_animated_react_component(frames, fps, component_name=DEFAULT_COMPONENT_NAME):
    if fps <= 0:
        raise InvalidArgumentError(f"fps must be positive, got {fps}")
    interval_ms = round_half_up(1000 / fps)
    frame_literals = "".join(f"  `{escape_template_literal(frame)}`,\n" for frame in frames)
    return (
        'import { useState, useEffect } from "react";\n'
        "\n"
        "const frames = [\n"
        f"{frame_literals}"
        "];\n"
        "\n"
        f"export function {component_name}() {{\n"
        "  const [frame, setFrame] = useState(0);\n"
        "\n"
        "  useEffect(() => {\n"
        "    if (frames.length === 0) return;\n"
        "    const interval = setInterval(() => {\n"
        "      setFrame((f) => (f + 1) % frames.length);\n"
        f"    }}, {interval_ms});\n"
        "    return () => clearInterval(interval);\n"
        "  }, []);\n"
        "\n"
        "  return (\n"
        f'    <pre className="{PRE_CLASSES}">\n'
        "      {frames[frame]}\n"
        "    </pre>\n"
        "  );\n"
        "}\n"
    )
