"""End-to-end tests for the click CLI against a temporary SQLite database."""

import re

import pytest
from click.testing import CliRunner

from storefront.config.settings import reset_settings
from storefront.infrastructure import bootstrap
from storefront.infrastructure.cli.main import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("STOREFRONT_DB_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("STOREFRONT_ENVIRONMENT", "test")
    reset_settings()
    bootstrap.reset()
    runner = CliRunner()
    _ok(runner, ["db", "init"])
    yield runner
    bootstrap.reset()
    reset_settings()


def _ok(runner, args):
    result = runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    return result


def _seed(runner):
    _ok(runner, ["catalog", "add-product", "--sku", "tee", "--name", "Basic Tee", "--price", "25.00"])
    _ok(runner, ["catalog", "add-variant", "--product", "TEE", "--size", "M", "--color", "Black", "--stock", "4"])
    _ok(runner, ["shipping", "add", "--code", "standard", "--name", "Standard", "--cost", "4.95"])


ADDRESS = [
    "--email", "alice@example.com",
    "--first-name", "Alice",
    "--last-name", "Meyer",
    "--street", "Hauptstr. 1",
    "--postal-code", "10115",
    "--city", "Berlin",
    "--phone", "+49 30 1234",
    "--shipping", "1",
]


def _order_number(output: str) -> str:
    match = re.search(r"Order (ZF-\d{6}-\d{3,})", output)
    assert match, output
    return match.group(1)


class TestCatalogCommands:

    def test_list_shows_products_and_variants(self, runner):
        _seed(runner)
        result = _ok(runner, ["catalog", "list"])
        assert "Basic Tee" in result.output
        assert "TEE-BL-M" in result.output

    def test_duplicate_product_is_an_error(self, runner):
        _seed(runner)
        result = runner.invoke(cli, ["catalog", "add-product", "--sku", "TEE", "--name", "X", "--price", "1"])
        assert result.exit_code == 1
        assert "already exists" in result.output


class TestCheckoutFlow:

    def test_card_checkout_then_confirm(self, runner):
        _seed(runner)
        _ok(runner, ["cart", "add", "--user", "7", "--variant", "1", "--quantity", "2"])

        placed = _ok(runner, ["order", "place", "--user", "7", *ADDRESS])
        number = _order_number(placed.output)
        assert "Awaiting payment" in placed.output

        inventory = _ok(runner, ["inventory", "show"])
        assert re.search(r"TEE-BL-M.*\b4\b.*\b2\b.*\b2\b", inventory.output)

        _ok(runner, ["order", "confirm", number, "--user", "7"])
        shown = _ok(runner, ["order", "show", number])
        assert "payment=paid" in shown.output

        cart = _ok(runner, ["cart", "show", "--user", "7"])
        assert "Cart is empty." in cart.output

        history = _ok(runner, ["inventory", "history", "--sku", "TEE-BL-M"])
        assert number in history.output

    def test_oversell_rejected(self, runner):
        _seed(runner)
        _ok(runner, ["cart", "add", "--user", "1", "--variant", "1", "--quantity", "3"])
        _ok(runner, ["cart", "add", "--user", "2", "--variant", "1", "--quantity", "3"])
        _ok(runner, ["order", "place", "--user", "1", *ADDRESS])

        result = runner.invoke(cli, ["order", "place", "--user", "2", *ADDRESS])

        assert result.exit_code == 1
        assert "Insufficient stock" in result.output

    def test_confirm_by_reference_only(self, runner):
        _seed(runner)
        _ok(runner, ["cart", "add", "--user", "7", "--variant", "1"])
        placed = _ok(runner, ["order", "place", "--user", "7", *ADDRESS])
        number = _order_number(placed.output)
        reference = re.search(r"reference (\S+)", placed.output).group(1)

        confirmed = _ok(runner, ["order", "confirm", "--reference", reference])

        assert f"Order {number} paid" in confirmed.output

    def test_confirm_needs_number_or_reference(self, runner):
        result = runner.invoke(cli, ["order", "confirm"])
        assert result.exit_code == 2
        assert "--reference" in result.output

    def test_guest_invoice_checkout_with_session_file(self, runner, tmp_path):
        _seed(runner)
        session = str(tmp_path / "visitor.json")
        _ok(runner, ["cart", "add", "--session", session, "--variant", "1"])

        placed = _ok(runner, ["order", "place", "--session", session, "--payment", "invoice", *ADDRESS])
        number = _order_number(placed.output)
        assert "status=processing" in placed.output

        cart = _ok(runner, ["cart", "show", "--session", session])
        assert "Cart is empty." in cart.output

        _ok(runner, ["order", "mark-paid", number, "--reference", "bank-1"])
        _ok(runner, ["order", "ship", number, "--tracking", "DHL-1"])
        delivered = _ok(runner, ["order", "deliver", number])
        assert "delivered" in delivered.output

    def test_cart_requires_an_owner(self, runner):
        result = runner.invoke(cli, ["cart", "show"])
        assert result.exit_code == 2
        assert "--user or --session" in result.output


class TestHousekeeping:

    def test_restock_and_reconcile(self, runner):
        _seed(runner)
        restocked = _ok(runner, ["inventory", "restock", "--sku", "TEE-BL-M", "--quantity", "6"])
        assert "now 10 on hand" in restocked.output

        reconciled = _ok(runner, ["inventory", "reconcile"])
        assert "consistent" in reconciled.output

    def test_inventory_value(self, runner):
        _seed(runner)
        _ok(runner, ["catalog", "update", "--sku", "TEE", "--cost-price", "9.00"])

        result = _ok(runner, ["inventory", "value"])

        assert "Inventory value: €36.00" in result.output

    def test_expire_with_nothing_pending(self, runner):
        result = _ok(runner, ["order", "expire"])
        assert "No expired orders." in result.output

    def test_anonymize_needs_identifier(self, runner):
        result = runner.invoke(cli, ["order", "anonymize"])
        assert result.exit_code == 1
