# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base Pydantic model for all capital stack configuration.

    Configuration objects are immutable. Running balances and cumulative
    distribution state are held by the engines for the duration of one
    evaluation, never on the models themselves.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra="forbid",  # Catches typos in tranche and tier definitions
    )
