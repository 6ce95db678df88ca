"""Serializer stability checks.

A round trip here means parse -> serialize -> parse -> serialize and a
byte comparison of the two serializations. It certifies that the
serializer is stable; it does not claim fidelity to the original input,
which is expected to be reformatted by the first pass.
"""

import difflib
from typing import Any, Callable

from .exceptions import ManifestEditorError


def check_round_trip(
    serialized: str,
    parse: Callable[[str], Any],
    serialize: Callable[[Any], str],
    manifest_type: str,
) -> dict[str, Any]:
    """Re-parse a serialization and compare the re-serialization to it.

    Args:
        serialized: Output of a previous serialization
        parse: Builds a document from text
        serialize: Turns a document back into text
        manifest_type: Label for the result ('dash_mpd', 'hls_master')

    Returns:
        Validation result dictionary

    Example:
        >>> result = check_round_trip(doc.to_xml(), MPDDocument, MPDDocument.to_xml, "dash_mpd")
        >>> print(result["passed"])
        True
    """
    result: dict[str, Any] = {
        "type": manifest_type,
        "passed": True,
        "checks": [],
    }

    # Check 1: Re-parse the serialization
    try:
        reparsed = parse(serialized)
    except ManifestEditorError as e:
        result["passed"] = False
        result["checks"].append({
            "check": "reparse",
            "passed": False,
            "message": f"Serialized manifest could not be parsed: {e.message}",
            "details": e.to_dict(),
        })
        return result

    result["checks"].append({
        "check": "reparse",
        "passed": True,
        "message": "Serialized manifest parses",
    })

    # Check 2: Byte-identical re-serialization
    reserialized = serialize(reparsed)
    stable = reserialized == serialized
    check: dict[str, Any] = {
        "check": "stable_serialization",
        "passed": stable,
        "message": "Serialization is stable" if stable else "Serialization changed on round trip",
    }
    if not stable:
        result["passed"] = False
        check["details"] = {
            "diff": "".join(
                difflib.unified_diff(
                    serialized.splitlines(keepends=True),
                    reserialized.splitlines(keepends=True),
                    fromfile="first",
                    tofile="second",
                )
            ),
        }
    result["checks"].append(check)

    return result
