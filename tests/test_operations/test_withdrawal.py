"""
Tests for the withdrawal operations.
"""
import asyncio

import pytest

from operations.withdrawal import (
    build_withdraw_coin_params,
    withdraw_coin,
    withdraw_coin_by_username,
    withdraw_fee,
)

WITHDRAW_RESPONSE = {
    "status": "approved",
    "withdraw_currency": "btc",
    "withdraw_address": "1KuSbzyNGSpHbunM6vAX7ZEMmkQM6HJnTy",
    "withdraw_amount": "0.01000000",
    "fee": "0.00050000",
    "amount_after_fee": "0.00950000",
    "submit_time": "1572851285",
    "withdraw_id": "btc-12345",
    "txid": "",
    "request_id": "req-001",
}


class TestWithdrawFee:
    """Test the withdraw_fee operation."""

    def test_network_omitted_when_none(self, exchange, credentials) -> None:
        exchange.respond({"server_time": 1578898593, "withdraw_fee": 0.0005, "currency": "eth"})

        asyncio.run(withdraw_fee(credentials, "ETH"))

        sent = exchange.sent
        assert sent["method"] == "withdrawFee"
        assert sent["currency"] == "eth"
        assert "network" not in sent

    def test_report(self, exchange, credentials) -> None:
        exchange.respond({"server_time": 1578898593, "withdraw_fee": 0.0005, "currency": "eth"})

        result = asyncio.run(withdraw_fee(credentials, "eth", network="erc20"))

        assert exchange.sent["network"] == "erc20"
        text = result.render()
        assert "Currency: ETH" in text
        assert "Network: ERC20" in text
        assert text.endswith("Withdrawal Fee: 0.00050000 ETH")

    def test_idr_fee(self, exchange, credentials) -> None:
        exchange.respond({"server_time": 1578898593, "withdraw_fee": "6500", "currency": "idr"})

        result = asyncio.run(withdraw_fee(credentials, "idr"))

        assert result.render().endswith("Withdrawal Fee: Rp6.500")

    def test_missing_currency(self, exchange, credentials) -> None:
        result = asyncio.run(withdraw_fee(credentials, ""))

        assert result.render() == "Failed to Retrieve Withdrawal Fee\nField 'currency' is required"
        exchange.mock_post.assert_not_called()


class TestWithdrawCoin:
    """Test the withdraw_coin operation."""

    def test_params(self, exchange, credentials) -> None:
        exchange.respond(WITHDRAW_RESPONSE)

        asyncio.run(withdraw_coin(credentials, "BTC", "mainnet", "1KuSbzyNGSpHbunM6vAX7ZEMmkQM6HJnTy",
                                  "0.01", "req-001"))

        sent = exchange.sent
        assert sent["method"] == "withdrawCoin"
        assert sent["currency"] == "btc"
        assert sent["network"] == "mainnet"
        assert sent["withdraw_address"] == "1KuSbzyNGSpHbunM6vAX7ZEMmkQM6HJnTy"
        assert sent["withdraw_amount"] == "0.01"
        assert sent["request_id"] == "req-001"
        assert "withdraw_memo" not in sent
        assert "withdraw_input_method" not in sent

    def test_memo_sent_when_given(self, exchange, credentials) -> None:
        exchange.respond(dict(WITHDRAW_RESPONSE, withdraw_currency="xrp"))

        result = asyncio.run(withdraw_coin(credentials, "xrp", "xrp", "rAddress", 25, "req-002", memo="12345"))

        assert exchange.sent["withdraw_memo"] == "12345"
        assert result.render().endswith("Memo: 12345")

    def test_receipt(self, exchange, credentials) -> None:
        exchange.respond(WITHDRAW_RESPONSE)

        result = asyncio.run(withdraw_coin(credentials, "btc", "mainnet", "1KuSbzyNGSpHbunM6vAX7ZEMmkQM6HJnTy",
                                           0.01, "req-001"))

        text = result.render()
        assert text.startswith("Indodax Asset Withdrawal Report\n")
        assert "Currency: BTC" in text
        assert "Network: MAINNET" in text
        assert "Recipient Address: 1KuSbzyNGSpHbunM6vAX7ZEMmkQM6HJnTy" in text
        assert "Amount: 0.01000000 BTC" in text
        assert "Fee: 0.00050000 BTC" in text
        assert text.endswith("Request ID: req-001")

    def test_invalid_amount(self, exchange, credentials) -> None:
        result = asyncio.run(withdraw_coin(credentials, "btc", "mainnet", "x", "-1", "r"))

        assert result.render() == "Failed to Process Withdrawal\nField 'withdraw_amount' must be a positive number"
        exchange.mock_post.assert_not_called()

    def test_missing_address(self) -> None:
        with pytest.raises(ValueError, match="Field 'withdraw_address' is required"):
            build_withdraw_coin_params("btc", "mainnet", " ", 1, "r")

    def test_api_failure(self, exchange, credentials) -> None:
        exchange.fail("Insufficient balance")

        result = asyncio.run(withdraw_coin(credentials, "btc", "mainnet", "addr", 1, "req-003"))

        assert not result.ok
        assert result.render() == "Failed to Process Withdrawal\nInsufficient balance"


class TestWithdrawCoinByUsername:
    """Test the withdraw_coin_by_username operation."""

    def test_params(self, exchange, credentials) -> None:
        exchange.respond({"withdraw_currency": "usdt", "withdraw_amount": "10", "fee": "0",
                          "submit_time": "1572851285", "request_id": "req-010"})

        asyncio.run(withdraw_coin_by_username(credentials, "usdt", 10, "req-010", "budi"))

        sent = exchange.sent
        assert sent["method"] == "withdrawCoin"
        assert sent["withdraw_input_method"] == "username"
        assert sent["withdraw_username"] == "budi"
        assert sent["withdraw_amount"] == "10"
        assert "network" not in sent
        assert "withdraw_address" not in sent
        assert "withdraw_memo" not in sent

    def test_receipt(self, exchange, credentials) -> None:
        exchange.respond({"withdraw_currency": "usdt", "withdraw_amount": "10", "fee": "0",
                          "submit_time": "1572851285", "request_id": "req-010"})

        result = asyncio.run(withdraw_coin_by_username(credentials, "usdt", 10, "req-010", "budi"))

        text = result.render()
        assert text.startswith("Indodax Withdrawal to Username Report\n")
        assert "Recipient Username: budi" in text
        assert "Amount: 10.00000000 USDT" in text
        assert "Fee: 0.00000000 USDT" in text
        assert "Memo" not in text

    def test_failure_header(self, exchange, credentials) -> None:
        exchange.fail("Username not found")

        result = asyncio.run(withdraw_coin_by_username(credentials, "usdt", 10, "req-011", "nobody"))

        assert result.render() == "Failed to Process Withdrawal to Username\nUsername not found"
