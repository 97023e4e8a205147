import pytest

from orders.models import OrderStatus, PaymentStatus
from orders.status import describe_order_status, describe_payment_status


class TestOrderStatusProjection:

    @pytest.mark.parametrize('status', OrderStatus.values)
    def test_every_order_status_has_label_and_color(self, status):
        badge = describe_order_status(status)
        assert badge.label == OrderStatus(status).label
        assert badge.color

    @pytest.mark.parametrize('status', PaymentStatus.values)
    def test_every_payment_status_has_label_and_color(self, status):
        badge = describe_payment_status(status)
        assert badge.label == PaymentStatus(status).label
        assert badge.color

    def test_known_values(self):
        assert describe_order_status('PROCESSING') == ('Processing', 'info')
        assert describe_payment_status('PAID') == ('Paid', 'success')
        assert describe_payment_status('FAILED') == ('Failed', 'danger')

    def test_unknown_value_falls_back_to_neutral(self):
        assert describe_order_status('ON_HOLD') == ('ON_HOLD', 'neutral')
        assert describe_payment_status(None) == ('', 'neutral')
