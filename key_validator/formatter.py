"""
Render a normalized key set into one of the supported output encodings.

Formatting is pure string assembly. Whether the result can be parsed back
is checked separately by the round-trip verifier.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from .models import KEY_PLACEHOLDER, FormatOptions, OutputFormat


def format_keys(
    keys: Sequence[str],
    output_format: OutputFormat | str,
    options: FormatOptions | None = None,
) -> str:
    """Render `keys` as a single text blob.

    Args:
        keys: Output values, normally canonical keys (unfixable originals
            pass through as-is).
        output_format: Target encoding. Unknown selectors render as CSV.
        options: var_name for env_line; template and joiner for
            per_key_template.
    """
    output_format = OutputFormat(output_format)
    options = options or FormatOptions()

    if output_format is OutputFormat.ENV_LINE:
        return f"{options.var_name}={','.join(keys)}"

    if output_format is OutputFormat.JSON_ARRAY:
        return json.dumps(list(keys), indent=2, ensure_ascii=False)

    if output_format is OutputFormat.LINES:
        return "\n".join(keys)

    if output_format is OutputFormat.PER_KEY_TEMPLATE:
        return options.joiner.join(
            options.template.replace(KEY_PLACEHOLDER, key) for key in keys
        )

    return ",".join(keys)
