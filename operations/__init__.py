"""
Indodax private API operations.

Every operation is a coroutine that takes the credentials first and returns an
``OperationResult``; call ``render()`` on it for the user-facing text.
"""
from .result import OperationError, OperationResult
from .account import get_info, trans_history
from .trading import (
    trade,
    trade_history,
    open_orders,
    order_history,
    get_order,
    cancel_order,
)
from .withdrawal import withdraw_fee, withdraw_coin, withdraw_coin_by_username
from .referral import list_downline, check_downline, create_voucher

OPERATIONS = {
    'getInfo': get_info,
    'transHistory': trans_history,
    'trade': trade,
    'tradeHistory': trade_history,
    'openOrders': open_orders,
    'orderHistory': order_history,
    'getOrder': get_order,
    'cancelOrder': cancel_order,
    'withdrawFee': withdraw_fee,
    'withdrawCoin': withdraw_coin,
    'withdrawCoinByUsername': withdraw_coin_by_username,
    'listDownline': list_downline,
    'checkDownline': check_downline,
    'createVoucher': create_voucher,
}

__all__ = [
    'OperationError',
    'OperationResult',
    'OPERATIONS',
    'get_info',
    'trans_history',
    'trade',
    'trade_history',
    'open_orders',
    'order_history',
    'get_order',
    'cancel_order',
    'withdraw_fee',
    'withdraw_coin',
    'withdraw_coin_by_username',
    'list_downline',
    'check_downline',
    'create_voucher',
]
