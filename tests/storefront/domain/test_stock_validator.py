import pytest
from storefront.catalog.product import Product
from storefront.cart.line import CartLine
from storefront.stock.validator import (
    StockStatus,
    StockValidator,
    checkout_allowed,
    clamp_quantity,
    classify,
)


class TestClassify:
    @pytest.mark.parametrize(
        "requested, available, status",
        [
            (1, 10, StockStatus.OK),
            (10, 10, StockStatus.OK),
            (5, 2, StockStatus.INSUFFICIENT),
            (1, 0, StockStatus.OUT_OF_STOCK),
            (0, 0, StockStatus.OUT_OF_STOCK),
        ],
    )
    def test_status(self, requested, available, status):
        assert classify("prod-001", requested, available).status == status

    def test_negative_available_is_treated_as_zero(self):
        verdict = classify("prod-001", 1, -4)
        assert verdict.is_out_of_stock
        assert verdict.available_stock == 0


def test_requesting_five_of_two_is_insufficient(belt):
    validator = StockValidator(catalog=None)
    [verdict] = validator.validate([(belt, 5)])
    assert verdict.status == StockStatus.INSUFFICIENT
    assert verdict.available_stock == 2
    assert verdict.requested_quantity == 5
    assert verdict.product_ref == "prod-004"


def test_zero_stock_is_out_of_stock_for_any_request(scarf):
    validator = StockValidator(catalog=None)
    verdicts = validator.validate([(scarf, 1), (scarf, 50)])
    assert all(verdict.is_out_of_stock for verdict in verdicts)


def test_unresolved_product_uses_fallback_stock():
    validator = StockValidator(catalog=None)
    [with_fallback, without] = validator.validate([(None, 2, 3), (None, 2)])
    assert with_fallback.product_ref == "unknown"
    assert with_fallback.is_ok
    assert without.is_out_of_stock


class TestCheckoutAllowed:
    def test_all_ok(self, shirt, tote):
        verdicts = StockValidator(catalog=None).validate([(shirt, 1), (tote, 5)])
        assert checkout_allowed(verdicts)

    def test_any_problem_blocks(self, shirt, belt):
        verdicts = StockValidator(catalog=None).validate([(shirt, 1), (belt, 3)])
        assert not checkout_allowed(verdicts)
        assert not StockValidator.checkout_allowed(verdicts)

    def test_empty_cart_cannot_check_out(self):
        assert not checkout_allowed([])


class TestMessages:
    def test_insufficient_message_names_available(self, belt):
        [verdict] = StockValidator(catalog=None).validate([(belt, 5)])
        assert verdict.message() == "Only 2 of Leather Belt available. Reduce the quantity to continue."

    def test_out_of_stock_message(self, scarf):
        [verdict] = StockValidator(catalog=None).validate([(scarf, 1)])
        assert verdict.message() == "Wool Scarf is out of stock. Remove it to continue."

    def test_ok_has_no_message(self, shirt):
        [verdict] = StockValidator(catalog=None).validate([(shirt, 1)])
        assert verdict.message() is None


class TestClamp:
    def test_clamp_quantity(self, belt):
        assert clamp_quantity(belt, 5) == 2
        assert clamp_quantity(belt, 1) == 1
        assert clamp_quantity(belt, -1) == 0

    @pytest.mark.asyncio
    async def test_clamp_against_catalog(self, catalog):
        validator = StockValidator(catalog)
        assert await validator.clamp("leather-belt", 9) == 2
        assert await validator.clamp("prod-004", 1) == 1
        assert await validator.clamp("no-such-thing", 3) == 0


class TestValidateLines:
    @pytest.mark.asyncio
    async def test_lines_are_checked_against_fresh_stock(self, catalog):
        validator = StockValidator(catalog)
        lines = [CartLine(product_ref="prod-001", quantity=2), CartLine(product_ref="prod-004", quantity=2)]
        assert checkout_allowed(await validator.validate_lines(lines))

        catalog.set_stock("prod-004", 1)
        verdicts = await validator.validate_lines(lines)
        assert [v.status for v in verdicts] == [StockStatus.OK, StockStatus.INSUFFICIENT]
        assert len(catalog.calls) == 4

    @pytest.mark.asyncio
    async def test_unresolvable_line_falls_back_to_embedded_stock(self, catalog):
        validator = StockValidator(catalog)
        embedded = {"prod-999": Product(product_id="prod-999", name="Old Stock", stock_quantity=3)}
        lines = [CartLine(product_ref="prod-999", quantity=2), CartLine(product_ref="prod-998", quantity=1)]

        verdicts = await validator.validate_lines(lines, embedded)
        assert verdicts[0].is_ok
        assert verdicts[0].available_stock == 3
        assert verdicts[1].is_out_of_stock

    @pytest.mark.asyncio
    async def test_catalog_failure_falls_back_to_embedded_stock(self, catalog, belt):
        catalog.configure(should_succeed=False, failure_reason="catalog down")
        validator = StockValidator(catalog)

        verdicts = await validator.validate_lines([CartLine(product_ref="prod-004", quantity=1)], {"prod-004": belt})
        assert verdicts[0].is_ok
        assert verdicts[0].available_stock == 2

    @pytest.mark.asyncio
    async def test_catalog_failure_without_embedded_data_blocks(self, catalog):
        catalog.configure(should_succeed=False)
        verdicts = await StockValidator(catalog).validate_lines([CartLine(product_ref="prod-001", quantity=1)])
        assert not checkout_allowed(verdicts)

