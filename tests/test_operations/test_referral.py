"""
Tests for the referral program operations.
"""
import asyncio

from operations.referral import check_downline, create_voucher, list_downline, parse_downline_page

DOWNLINES = {
    "current_page": 1,
    "total_page": 1,
    "total_data": 2,
    "data_per_page": 10,
    "data": [
        {
            "username": "budi",
            "email": "budi@example.com",
            "email_verified": True,
            "id_verified": False,
            "registration_date": 1600000000,
            "start": "2020-09-13",
            "end": None,
        },
        {
            "username": "siti",
            "email": "siti@example.com",
            "email_verified": False,
            "id_verified": True,
            "registration_date": 1600000100,
        },
    ],
}


class TestListDownline:
    """Test the list_downline operation."""

    def test_params(self, exchange, credentials) -> None:
        exchange.respond(DOWNLINES)

        asyncio.run(list_downline(credentials, page="2", limit=50))

        sent = exchange.sent
        assert sent["method"] == "listDownline"
        assert sent["page"] == "2"
        assert sent["limit"] == "50"

    def test_defaults(self, exchange, credentials) -> None:
        exchange.respond(DOWNLINES)

        asyncio.run(list_downline(credentials))

        assert exchange.sent["page"] == "1"
        assert exchange.sent["limit"] == "10"

    def test_report(self, exchange, credentials) -> None:
        exchange.respond(DOWNLINES)

        result = asyncio.run(list_downline(credentials))

        text = result.render()
        assert "Page: 1" in text
        assert "Total Data: 2" in text
        assert "Downline Count: 2" in text
        assert "Downline 1\nUsername: budi\nEmail: budi@example.com\nEmail Verification: Yes" in text
        assert "Identity Verification: No\nStart: 2020-09-13\nEnd: N/A" in text
        assert "Downline 2\nUsername: siti" in text

    def test_empty_page(self) -> None:
        report = parse_downline_page({"current_page": 3, "total_page": 2, "data": []})

        assert report.render().endswith("No downlines.")
        assert "Data per Page: -" in report.render()

    def test_invalid_page(self, exchange, credentials) -> None:
        result = asyncio.run(list_downline(credentials, page="first"))

        assert result.error.error_type == "ValueError"
        assert result.render().startswith("Failed to Retrieve Downline List\n")
        exchange.mock_post.assert_not_called()


class TestCheckDownline:
    """Test the check_downline operation."""

    def test_is_downline(self, exchange, credentials) -> None:
        exchange.respond({"is_downline": True})

        result = asyncio.run(check_downline(credentials, "budi@example.com"))

        assert exchange.sent["email"] == "budi@example.com"
        text = result.render()
        assert "Email: budi@example.com" in text
        assert text.endswith("Downline Status: Yes (Email is in your downline)")

    def test_not_downline(self, exchange, credentials) -> None:
        exchange.respond({"is_downline": False})

        result = asyncio.run(check_downline(credentials, "stranger@example.com"))

        assert result.report.is_downline is False
        assert result.render().endswith("Downline Status: No (Email is not in your downline)")

    def test_email_required(self, exchange, credentials) -> None:
        result = asyncio.run(check_downline(credentials, ""))

        assert result.render() == "Failed to Check Downline\nField 'email' is required"
        exchange.mock_post.assert_not_called()


class TestCreateVoucher:
    """Test the create_voucher operation."""

    def test_params_and_receipt(self, exchange, credentials) -> None:
        exchange.respond({"amount": 50000, "to_email": "budi@example.com",
                          "voucher": "IDR-VOUCHER-XYZ", "submit_time": 1600000000})

        result = asyncio.run(create_voucher(credentials, "50000", "budi@example.com"))

        sent = exchange.sent
        assert sent["method"] == "createVoucher"
        assert sent["amount"] == "50000"
        assert sent["to_email"] == "budi@example.com"
        text = result.render()
        assert "Voucher Amount: Rp50.000" in text
        assert "Recipient Email: budi@example.com" in text
        assert "Voucher Code: IDR-VOUCHER-XYZ" in text

    def test_failure(self, exchange, credentials) -> None:
        exchange.fail("Insufficient balance")

        result = asyncio.run(create_voucher(credentials, 50000, "budi@example.com"))

        assert result.to_dict() == {
            "operation": "createVoucher",
            "ok": False,
            "error": {
                "header": "Failed to Create Voucher",
                "message": "Insufficient balance",
                "error_type": "APIError",
                "error_code": "API_ERROR",
            },
        }
