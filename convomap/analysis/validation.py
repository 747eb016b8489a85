from typing import Any, Iterable


def require_choice(raw: dict[str, Any], key: str, allowed: Iterable[str]) -> str:
    value = raw.get(key)
    if value not in allowed:
        raise ValueError(f"Invalid {key}: {value!r}")
    return value


def require_confidence(raw: dict[str, Any]) -> float:
    """Confidence must be a real number in [0, 1]; strings and booleans are rejected"""
    value = raw.get("confidence")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 1:
        raise ValueError(f"Invalid confidence value: {value!r}")
    return float(value)


def reasoning_or_default(raw: dict[str, Any]) -> str:
    reasoning = raw.get("reasoning")
    return reasoning if isinstance(reasoning, str) and reasoning.strip() else "No reasoning provided"
