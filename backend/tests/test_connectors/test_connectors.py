"""
Unit tests for vendor connectors

HTTP and FTP calls are mocked; only request building and response
parsing are exercised.

Author: TM3
Date: 2025-10-17
"""
import hashlib
import ftplib
import pytest
from datetime import date
from unittest.mock import MagicMock, patch

from bestprice.connectors.bill_hicks_ftp_connector import BillHicksFTPConnector, parse_ftp_host
from bestprice.connectors.chattanooga_connector import ChattanoogaConnector, build_auth_header
from bestprice.connectors.lipseys_connector import LipseysConnector, image_url
from bestprice.connectors.sports_south_connector import (
    SportsSouthConnector, parse_item_tables, format_last_update
)


class TestChattanooga:

    def test_auth_header_is_md5_of_token(self):
        expected = hashlib.md5(b"tok123").hexdigest()
        assert build_auth_header("SID42", "tok123") == f"Basic SID42:{expected}"

    def test_requires_sid_and_token(self):
        with pytest.raises(ValueError):
            ChattanoogaConnector(sid="SID42", token=None)


class TestLipseys:

    def test_image_url(self):
        assert image_url("ABC123.jpg") == "https://www.lipseyscloud.com/images/ABC123.jpg"
        assert image_url("") is None

    def test_requires_credentials(self):
        with pytest.raises(ValueError):
            LipseysConnector(email="buyer@example.com")


class TestSportsSouth:

    DATASET = (
        '<NewDataSet>'
        '<Table><ITEMNO>1001</ITEMNO><IDESC>Widget Rifle</IDESC><PRC1>499.99</PRC1><QTYOH>4</QTYOH></Table>'
        '<Table><ITEMNO>1002</ITEMNO><IDESC> Scope </IDESC><PRC1>89.00</PRC1><QTYOH/></Table>'
        '</NewDataSet>'
    )

    def test_parse_tables(self):
        rows = parse_item_tables(self.DATASET)
        assert rows == [
            {"ITEMNO": "1001", "IDESC": "Widget Rifle", "PRC1": "499.99", "QTYOH": "4"},
            {"ITEMNO": "1002", "IDESC": "Scope", "PRC1": "89.00", "QTYOH": ""},
        ]

    def test_parse_dataset_wrapped_in_string(self):
        escaped = self.DATASET.replace("<", "&lt;").replace(">", "&gt;")
        wrapped = f'<string xmlns="http://webservices.theshootingwarehouse.com/smart/Inventory.asmx">{escaped}</string>'
        assert len(parse_item_tables(wrapped)) == 2

    def test_format_last_update(self):
        assert format_last_update(None) == "1/1/1990"
        assert format_last_update(date(2025, 3, 7)) == "03/07/2025"

    def test_requires_all_credentials(self):
        with pytest.raises(ValueError):
            SportsSouthConnector(user_name="u", customer_number="1", password="p")

    def test_auth_error_detected(self):
        connector = SportsSouthConnector(user_name="u", customer_number="1", password="p", source="s")
        with patch.object(connector, "_daily_item_update", return_value="<string>Invalid login</string>"):
            result = connector._check_connection()
        assert result["success"] is False


class TestBillHicks:

    CREDENTIALS = {"ftpServer": "ftps://ftp.billhicks.com/", "ftpUsername": "dealer", "ftpPassword": "pw"}

    @pytest.mark.parametrize("server,expected", [
        ("ftps://ftp.billhicks.com/", ("ftp.billhicks.com", True)),
        ("ftp://ftp.billhicks.com", ("ftp.billhicks.com", False)),
        ("ftp.billhicks.com/", ("ftp.billhicks.com", False)),
    ])
    def test_parse_ftp_host(self, server, expected):
        assert parse_ftp_host(server) == expected

    def test_credentials_in_either_case(self):
        connector = BillHicksFTPConnector({
            "ftp_server": "ftp.billhicks.com", "ftp_username": "dealer", "ftp_password": "pw",
            "ftp_port": "2121", "ftp_base_path": "/root/"
        })
        assert connector.port == 2121
        assert connector._full_path("/feed.csv") == "/root/feed.csv"

    def test_missing_credentials(self):
        with pytest.raises(ValueError):
            BillHicksFTPConnector({"ftpServer": "ftp.billhicks.com"})

    def test_download_retries_then_succeeds(self):
        connector = BillHicksFTPConnector(self.CREDENTIALS, retry_delay=0)
        ftp = MagicMock()
        ftp.retrbinary.side_effect = lambda cmd, callback: callback("\ufeffsku,name\n".encode("utf-8"))

        with patch.object(connector, "_connect", side_effect=[OSError("reset"), ftp]):
            with patch("bestprice.connectors.bill_hicks_ftp_connector.time.sleep"):
                content = connector.download("/feed.csv")

        assert content == "sku,name\n"
        ftp.quit.assert_called_once()

    def test_download_gives_up(self):
        connector = BillHicksFTPConnector(self.CREDENTIALS, retry_delay=0)

        with patch.object(connector, "_connect", side_effect=ftplib.error_perm("530 Login incorrect")):
            with patch("bestprice.connectors.bill_hicks_ftp_connector.time.sleep") as sleep:
                with pytest.raises(ConnectionError, match="after 3 attempts"):
                    connector.download("/feed.csv")

        assert sleep.call_count == 2
