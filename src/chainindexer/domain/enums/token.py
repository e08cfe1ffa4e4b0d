from enum import Enum


class TokenType(str, Enum):
    """DCDT token collection types as stored on token documents."""

    FUNGIBLE = "FungibleDCDT"
    NON_FUNGIBLE = "NonFungibleDCDT"
    SEMI_FUNGIBLE = "SemiFungibleDCDT"
    META = "MetaDCDT"

    @classmethod
    def normalize(cls, raw: str) -> str:
        """Map bare chain names (``SemiFungible``) to the stored form (``SemiFungibleDCDT``)."""
        if not raw or raw.endswith("DCDT"):
            return raw
        return raw + "DCDT"


class TokenRole(str, Enum):
    NFT_CREATE = "DCDTRoleNFTCreate"
    BURN_FOR_ALL = "DCDTRoleBurnForAll"
