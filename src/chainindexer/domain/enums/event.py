from enum import Enum


class EventIdentifier(str, Enum):
    """Event identifiers recognized by the log classifier."""

    # contract lifecycle
    SC_DEPLOY = "SCDeploy"
    SC_UPGRADE = "SCUpgrade"
    CHANGE_OWNER = "ChangeOwnerAddress"

    # informative
    WRITE_LOG = "writeLog"
    SIGNAL_ERROR = "signalError"
    COMPLETED_TX = "completedTxEvent"
    INTERNAL_VM_ERRORS = "internalVMErrors"

    # NFT properties
    NFT_ADD_URI = "DCDTNFTAddURI"
    NFT_UPDATE_ATTRIBUTES = "DCDTNFTUpdateAttributes"
    FREEZE = "DCDTFreeze"
    UNFREEZE = "DCDTUnFreeze"
    PAUSE = "DCDTPause"
    UNPAUSE = "DCDTUnPause"

    # token roles and properties
    SET_ROLE = "DCDTSetRole"
    UNSET_ROLE = "DCDTUnSetRole"
    NFT_CREATE_ROLE_TRANSFER = "DCDTNFTCreateRoleTransfer"
    UPGRADE_PROPERTIES = "upgradeProperties"
    SET_BURN_ROLE_FOR_ALL = "DCDTSetBurnRoleForAll"
    UNSET_BURN_ROLE_FOR_ALL = "DCDTUnSetBurnRoleForAll"

    # token issuance (metachain only)
    ISSUE_FUNGIBLE = "issue"
    ISSUE_SEMI_FUNGIBLE = "issueSemiFungible"
    ISSUE_NON_FUNGIBLE = "issueNonFungible"
    REGISTER_META = "registerMetaDCDT"
    CHANGE_SFT_TO_META = "changeSFTToMetaDCDT"
    TRANSFER_OWNERSHIP = "transferOwnership"
    REGISTER_AND_SET_ALL_ROLES = "registerAndSetAllRoles"

    # delegation
    DELEGATE = "delegate"
    UNDELEGATE = "unDelegate"
    WITHDRAW = "withdraw"
    REDELEGATE_REWARDS = "reDelegateRewards"

    # NFT lifecycle
    NFT_CREATE = "DCDTNFTCreate"
    NFT_BURN = "DCDTNFTBurn"
    WIPE = "DCDTWipe"
    NFT_TRANSFER = "DCDTNFTTransfer"
    MULTI_NFT_TRANSFER = "MultiDCDTNFTTransfer"

    # fungible built-ins, seen in data fields
    TRANSFER = "DCDTTransfer"
