"""
Datasource weight resolution.

Merges request-level datasource settings over the configured defaults.
Design: Pure function - defaults are passed in, never read from globals.
"""

from typing import Dict, Mapping, Optional, Sequence

from association_engine.domain.models import DatasourceSetting


def resolve_weights(
    requested: Optional[Sequence[DatasourceSetting]],
    defaults: Mapping[str, DatasourceSetting],
) -> Dict[str, DatasourceSetting]:
    """
    Resolve the effective setting of every known datasource.

    Args:
        requested: Request-level settings, or None to use the defaults unchanged
        defaults: Configured settings keyed by datasource id

    Returns:
        Settings keyed by datasource id. A requested setting replaces the
        default for its id as a whole (weight and required both come from
        the request).
    """
    resolved = dict(defaults)
    if not requested:
        return resolved

    for setting in requested:
        resolved[setting.datasource_id] = setting

    return resolved


def setting_for(weights: Mapping[str, DatasourceSetting], datasource_id: str) -> DatasourceSetting:
    """Setting of a datasource; unknown ids weigh 0 and are never required."""
    setting = weights.get(datasource_id)
    if setting is None:
        return DatasourceSetting(datasource_id=datasource_id, weight=0.0, required=False)
    return setting
