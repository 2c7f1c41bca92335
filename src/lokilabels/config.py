"""Configuration loading with environment lookup and precedence resolution.

Settings come from two layers:

* **Environment variables** -- ``ISSUER``, ``CLIENT_ID``, ``CLIENT_SECRET``,
  ``LOKI`` and ``SERVER``. Keys are matched case-insensitively and carry no
  prefix, so ``loki=...`` works as well as ``LOKI=...``.
* **CLI flags** -- passed to :func:`resolve_settings` as overrides; any
  value that is not ``None`` wins over the environment.

The merged values are validated into a frozen
:class:`~lokilabels.models.Settings`. Validation problems are reported as a
single :class:`~lokilabels.exceptions.ConfigError` naming every bad key.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Optional

from pydantic import ValidationError

from lokilabels.exceptions import ConfigError
from lokilabels.models import Settings

# Settings field -> environment key
ENV_KEYS: dict[str, str] = {
    "issuer": "ISSUER",
    "client_id": "CLIENT_ID",
    "client_secret": "CLIENT_SECRET",
    "loki": "LOKI",
    "server": "SERVER",
}

_REQUIRED = ("issuer", "client_id", "client_secret", "loki")


def lookup_env(key: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the value of *key* from *environ*, ignoring case.

    An exact-case match is preferred; otherwise the first key whose
    upper-cased form equals ``key.upper()`` is used.

    Args:
        key: Variable name, e.g. ``"CLIENT_ID"``.
        environ: Mapping to search. Defaults to :data:`os.environ`.

    Returns:
        The value, or ``None`` when no matching variable is set.
    """
    env = os.environ if environ is None else environ
    if key in env:
        return env[key]
    wanted = key.upper()
    for name, value in env.items():
        if name.upper() == wanted:
            return value
    return None


def load_env(environ: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Collect every recognised setting present in *environ*.

    Returns:
        A dict keyed by :class:`~lokilabels.models.Settings` field names.
    """
    values: dict[str, str] = {}
    for field, env_key in ENV_KEYS.items():
        value = lookup_env(env_key, environ)
        if value is not None:
            values[field] = value
    return values


def resolve_settings(
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Optional[str],
) -> Settings:
    """Resolve settings with full precedence chain.

    Precedence (high to low):
        1. Keyword overrides (CLI flags), when not ``None``
        2. Environment variables

    Args:
        environ: Environment mapping. Defaults to :data:`os.environ`.
        **overrides: Field-name keyed overrides such as ``issuer=...``.

    Returns:
        The validated :class:`~lokilabels.models.Settings`.

    Raises:
        ConfigError: If a required setting is missing or a value is invalid.
    """
    unknown = set(overrides) - set(ENV_KEYS)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

    values = load_env(environ)
    values.update({k: v for k, v in overrides.items() if v is not None})

    missing = [ENV_KEYS[f] for f in _REQUIRED if not values.get(f)]
    if missing:
        raise ConfigError(
            f"Missing required setting(s): {', '.join(missing)} "
            "(set them in the environment)"
        )

    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{ENV_KEYS.get(str(err['loc'][0]), err['loc'][0])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc
