# storepos/services/checkout_service.py
import asyncio
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union
from ..config import Config
from ..exceptions import (
    CommitFailed,
    DuplicateCommit,
    EmptyCart,
    InsufficientPayment,
    InsufficientStock,
    InvalidInput,
    InvalidPayment,
    InvalidStateTransition,
    PersistenceUnavailable,
)
from ..models.transaction import (
    CheckoutState,
    PaymentMethod,
    PaymentSelection,
    Transaction,
    TransactionLine,
)
from ..models.user import Cashier
from .cart_service import CartService
from .money import Totals, calculate_change
from .stock_repository import StockRepository

class CheckoutService:
    """Turns the cart into a committed sale.

    States run Idle -> Validating -> Committing -> Completed | Failed.
    Validation problems send the manager back to Idle. A rejected commit
    leaves it Failed with the cart untouched so the operator can retry;
    the retry reuses the attempt's idempotency key, so a commit that
    actually landed is never applied twice.
    """

    def __init__(self, db, cart: CartService, cashier: Union[Cashier, str],
                 stock_repository: StockRepository = None,
                 commit_timeout: Optional[float] = None):
        self.db = db
        self.cart = cart
        self.cashier_id = cashier.cashier_id if isinstance(cashier, Cashier) else cashier
        self.stock = stock_repository or StockRepository(db)
        self.commit_timeout = Config.COMMIT_TIMEOUT if commit_timeout is None else commit_timeout
        self.state = CheckoutState.IDLE
        self.last_transaction: Optional[Transaction] = None
        self._attempt_key: Optional[str] = None
        self._attempt_fingerprint: Optional[tuple] = None
        self.logger = logging.getLogger(__name__)

    def quote(self) -> Totals:
        """Current cart totals at full precision"""
        return self.cart.totals()

    def validate(self, payment: PaymentSelection) -> Totals:
        """Check the cart and payment without committing anything"""
        self._begin()
        try:
            return self._validate(payment)
        finally:
            self.state = CheckoutState.IDLE

    async def checkout(self, payment: PaymentSelection) -> Transaction:
        """Validate, then commit the sale and its stock decrements atomically.

        The caller clears the cart after a completed checkout.
        """
        self._begin()
        try:
            totals = self._validate(payment)
        except (InvalidInput, InsufficientPayment):
            self.state = CheckoutState.IDLE
            raise

        transaction = self._build_transaction(totals, payment)
        self.state = CheckoutState.COMMITTING
        self.logger.info(
            f"Committing checkout {transaction.idempotency_key}: "
            f"{len(transaction.items)} lines, total {transaction.total}"
        )

        # Once issued the commit runs to the end even if our caller goes away
        task = asyncio.ensure_future(self._run_commit(transaction))
        return await asyncio.shield(task)

    def abandon(self) -> None:
        """Drop the current attempt; nothing has been persisted"""
        if self.state == CheckoutState.COMMITTING:
            raise InvalidStateTransition("Cannot abandon a checkout while it is committing")
        self.state = CheckoutState.IDLE
        self._attempt_key = None
        self._attempt_fingerprint = None

    def reset(self) -> None:
        """Return to Idle after Completed or Failed, keeping any retry key"""
        if self.state == CheckoutState.COMMITTING:
            raise InvalidStateTransition("Cannot reset a checkout while it is committing")
        self.state = CheckoutState.IDLE

    def _begin(self) -> None:
        if self.state not in (CheckoutState.IDLE, CheckoutState.FAILED):
            raise InvalidStateTransition(f"Cannot start a checkout from {self.state.value}")
        self.state = CheckoutState.VALIDATING

    def _validate(self, payment: PaymentSelection) -> Totals:
        if self.cart.is_empty():
            raise EmptyCart("Cart is empty")

        if not self.stock.allow_negative_stock:
            for line in self.cart.lines:
                if line.quantity > line.product.stock:
                    raise InsufficientStock(line.product_id, line.quantity, line.product.stock)

        totals = self.cart.totals()
        if payment.method == PaymentMethod.CASH:
            if payment.tendered is None:
                raise InvalidPayment("Cash payment needs the amount tendered")
            if payment.tendered < totals.amount_due:
                raise InsufficientPayment(totals.amount_due, payment.tendered)
        return totals

    def _attempt_key_for(self, payment: PaymentSelection) -> str:
        fingerprint = (self.cart.fingerprint(), payment.method, payment.tendered)
        if self._attempt_key is None or fingerprint != self._attempt_fingerprint:
            self._attempt_key = uuid.uuid4().hex
            self._attempt_fingerprint = fingerprint
        return self._attempt_key

    def _build_transaction(self, totals: Totals, payment: PaymentSelection) -> Transaction:
        amount_due = totals.amount_due
        if payment.method == PaymentMethod.CASH:
            customer_paid = payment.tendered
            change = calculate_change(payment.tendered, amount_due)
        else:
            customer_paid = amount_due
            change = Decimal(0)

        items = tuple(
            TransactionLine(
                product_id=line.product_id,
                name=line.product.name,
                barcode=line.product.barcode,
                category=line.product.category,
                unit_price=line.product.price,
                quantity=line.quantity,
            )
            for line in self.cart.lines
        )

        return Transaction(
            transaction_id=uuid.uuid4().hex,
            idempotency_key=self._attempt_key_for(payment),
            items=items,
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.total,
            payment_method=payment.method,
            cashier_id=self.cashier_id,
            customer_paid=customer_paid,
            change=change,
            timestamp=datetime.now(timezone.utc),
        )

    async def _run_commit(self, transaction: Transaction) -> Transaction:
        try:
            if self.commit_timeout is not None:
                committed = await asyncio.wait_for(self._commit(transaction), self.commit_timeout)
            else:
                committed = await self._commit(transaction)
        except PersistenceUnavailable as e:
            self.state = CheckoutState.IDLE
            self.logger.error(f"Checkout {transaction.idempotency_key} not started: {e}")
            raise
        except CommitFailed as e:
            self.state = CheckoutState.FAILED
            self.logger.error(f"Checkout {transaction.idempotency_key} failed: {e}")
            raise
        except asyncio.TimeoutError as e:
            self.state = CheckoutState.FAILED
            self.logger.error(f"Checkout {transaction.idempotency_key} timed out")
            raise CommitFailed("Commit timed out; retrying is safe") from e
        except Exception as e:
            self.state = CheckoutState.FAILED
            self.logger.error(f"Checkout {transaction.idempotency_key} failed: {e}", exc_info=True)
            raise CommitFailed(str(e)) from e

        self.state = CheckoutState.COMPLETED
        self.last_transaction = committed
        self._attempt_key = None
        self._attempt_fingerprint = None
        self.logger.info(f"Transaction {committed.transaction_id} committed")
        return committed

    async def _commit(self, transaction: Transaction) -> Transaction:
        try:
            async with self.db.transaction() as session:
                existing = await session.get_transaction_by_key(transaction.idempotency_key)
                if existing:
                    self.logger.info(
                        f"Checkout {transaction.idempotency_key} already committed, "
                        f"returning transaction {existing['transaction_id']}"
                    )
                    return Transaction.from_document(existing)

                # Fixed lock order keeps concurrent commits from deadlocking
                for line in sorted(transaction.items, key=lambda l: l.product_id):
                    await self.stock.decrement(session, line.product_id, line.quantity)

                await session.insert_transaction(transaction.to_document())
        except DuplicateCommit:
            return await self._load_committed(transaction.idempotency_key)

        return transaction

    async def _load_committed(self, idempotency_key: str) -> Transaction:
        async with self.db.session() as session:
            existing = await session.get_transaction_by_key(idempotency_key)
        if existing is None:
            raise CommitFailed(f"Checkout {idempotency_key} reported as duplicate but not found")
        self.logger.info(f"Checkout {idempotency_key} raced a retry, using stored transaction")
        return Transaction.from_document(existing)
