from __future__ import annotations

import json
from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping

from tbg.contracts import BalanceSettings


def default_balance_settings() -> BalanceSettings:
    return BalanceSettings(
        refinement_factor=1,
        pad_overflow=True,
        shuffle_result=True,
        filler_tag_prefix="filler",
    )


def balance_settings_from_mapping(config: Mapping[str, Any]) -> BalanceSettings:
    known = {f.name for f in fields(BalanceSettings)}
    unknown = sorted(set(config) - known)
    if unknown:
        raise ValueError(f"unknown balance settings: {', '.join(unknown)}")

    settings = default_balance_settings()
    for key, value in config.items():
        setattr(settings, key, value)
    settings.validate()
    return settings


def load_balance_settings(path: Path) -> BalanceSettings:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"balance settings in {path} must be a JSON object")
    return balance_settings_from_mapping(raw)
