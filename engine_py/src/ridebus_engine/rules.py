"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field

from .constants import DEFAULT_HAND_SIZE, DEFAULT_PYRAMID_ROWS, pyramid_size


class RuleConfig(BaseModel):
    """Configuration for match rules."""

    stacking: bool = Field(
        default=True,
        description="Allow a player to answer one pyramid reveal with several cards; "
                    "only reachable with enforce_turn_order off, since every play passes the turn"
    )
    bus_penalty: int = Field(
        default=1,
        ge=0,
        le=10,
        description="Sips each rider takes on boarding the bus"
    )
    ace_high: bool = Field(
        default=True,
        description="Aces rank above kings when the bus round compares ranks"
    )
    pyramid_rows: int = Field(
        default=DEFAULT_PYRAMID_ROWS,
        ge=1,
        le=9,
        description="Number of rows dealt into the pyramid"
    )
    hand_size: int = Field(
        default=DEFAULT_HAND_SIZE,
        ge=1,
        le=10,
        description="Cards dealt to each player's private hand"
    )
    enforce_turn_order: bool = Field(
        default=True,
        description="Reject card plays from anyone but the player whose turn it is"
    )

    def get_pyramid_size(self) -> int:
        """Get the number of cards the pyramid consumes."""
        return pyramid_size(self.pyramid_rows)


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
