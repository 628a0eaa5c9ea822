ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Fee denominators
BPS_DENOMINATOR = 10000
FEE_FACTOR_DENOMINATOR = 1000

# Fee and slippage bounds enforced by set_settings
ENTRANCE_FEE_LL = 9900
ENTRANCE_FEE_MAX = 10000
PERFORMANCE_FEE_UL = 800
SLIPPAGE_UL = 900

# Event names recorded in vault_events
DEPOSIT_EVENT = "Deposit"
WITHDRAW_EVENT = "Withdraw"
ENTRANCE_FEE_EVENT = "EntranceFee"
HARVEST_EVENT = "Harvest"
DISTRIBUTE_FEES_EVENT = "DistributeFees"
SET_SETTINGS_EVENT = "SetSettings"
SET_GOVERNANCE_EVENT = "SetGovernance"
SET_REWARDS_EVENT = "SetRewards"
SET_TREASURY_EVENT = "SetTreasury"
ADD_HARVESTER_EVENT = "AddHarvester"
REMOVE_HARVESTER_EVENT = "RemoveHarvester"
PAUSE_EVENT = "Pause"
UNPAUSE_EVENT = "Unpause"
PANIC_EVENT = "Panic"
RETIRE_EVENT = "Retire"
RECOVER_STUCK_ASSET_EVENT = "RecoverStuckAsset"
UPGRADE_TO_EVENT = "UpgradeTo"
UPGRADE_FROM_EVENT = "UpgradeFrom"

CALLER_HEADER = "X-Caller-Address"
