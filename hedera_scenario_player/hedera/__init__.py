from hedera_scenario_player.hedera.accounts import AccountService
from hedera_scenario_player.hedera.client import HederaClient
from hedera_scenario_player.hedera.keys import SingleKey, SubmitKey, ThresholdKey
from hedera_scenario_player.hedera.messages import MessageService, TopicSubscription
from hedera_scenario_player.hedera.tokens import TokenService
from hedera_scenario_player.hedera.types import Account, TokenTransfer, TopicMessage

__all__ = [
    "Account",
    "AccountService",
    "HederaClient",
    "MessageService",
    "SingleKey",
    "SubmitKey",
    "ThresholdKey",
    "TokenService",
    "TokenTransfer",
    "TopicMessage",
    "TopicSubscription",
]
