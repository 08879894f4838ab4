from rent_guardian.shared.infrastructure.ledger_gateway import LedgerGateway, LedgerGatewayError
from rent_guardian.shared.infrastructure.operator_wallet import OperatorWallet
from rent_guardian.shared.infrastructure.rpc_manager import RpcConnectionManager

__all__ = ['LedgerGateway', 'LedgerGatewayError', 'OperatorWallet', 'RpcConnectionManager']
