"""
Registration fee policy.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.conf import settings


@dataclass(frozen=True)
class Quote:
    amount: Decimal
    original_amount: Decimal
    discount_percent: Decimal
    currency: str


class AmountPolicy:
    """
    Standard fee vs. IEEE-member fee, both taken from settings.
    The discount percentage is derived from the two amounts.
    """

    def __init__(self, standard_amount: Optional[Decimal] = None,
                 member_amount: Optional[Decimal] = None,
                 currency: Optional[str] = None):
        self.standard_amount = Decimal(
            standard_amount if standard_amount is not None
            else settings.REGISTRATION_STANDARD_AMOUNT
        )
        self.member_amount = Decimal(
            member_amount if member_amount is not None
            else settings.REGISTRATION_MEMBER_AMOUNT
        )
        self.currency = currency or settings.PAYMENT_CURRENCY

    @property
    def member_discount_percent(self) -> Decimal:
        if not self.standard_amount:
            return Decimal('0.00')
        percent = (self.standard_amount - self.member_amount) / self.standard_amount * 100
        return percent.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    def quote(self, ieee_member: bool) -> Quote:
        if ieee_member:
            return Quote(
                amount=self.member_amount,
                original_amount=self.standard_amount,
                discount_percent=self.member_discount_percent,
                currency=self.currency
            )
        return Quote(
            amount=self.standard_amount,
            original_amount=self.standard_amount,
            discount_percent=Decimal('0.00'),
            currency=self.currency
        )

    def quote_for(self, registration) -> Quote:
        return self.quote(registration.ieee_member == 'yes')
