# services/store.py

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from errors import NotFoundError, ValidationError
from models import Customer

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# ÉVÉNEMENTS
# Les vues (API, dashboard...) s'abonnent au store
# plutôt que de relire la liste en boucle.
# ─────────────────────────────────────────

CUSTOMER_ADDED = "customer_added"
CUSTOMERS_IMPORTED = "customers_imported"
CUSTOMER_UPDATED = "customer_updated"
CUSTOMER_DELETED = "customer_deleted"


@dataclass(frozen=True)
class StoreEvent:
    type: str
    customer_ids: tuple[str, ...] = field(default_factory=tuple)


Listener = Callable[[StoreEvent], None]


# ─────────────────────────────────────────
# STORE
# ─────────────────────────────────────────

class CustomerStore:
    """
    La collection unique de clients, en mémoire.

    → ordre d'affichage conservé (les nouveaux clients en tête)
    → remplacement d'enregistrements entiers, jamais de mutation en place
    → dernier écrivain gagnant, pas de contrôle de version
    """

    def __init__(self, customers: Optional[Iterable[Customer]] = None):
        self._customers: list[Customer] = list(customers or [])
        self._listeners: list[Listener] = []
        # L'API sert les routes sync dans un threadpool :
        # on sérialise les lecture-modification-écriture.
        self._lock = threading.RLock()

    # ─────────────────────────────────────────
    # LECTURE
    # ─────────────────────────────────────────

    def all(self) -> list[Customer]:
        with self._lock:
            return list(self._customers)

    def get(self, customer_id: str) -> Customer:
        with self._lock:
            for customer in self._customers:
                if customer.id == customer_id:
                    return customer
        raise NotFoundError(f"Customer {customer_id} not found.")

    def __len__(self) -> int:
        return len(self._customers)

    # ─────────────────────────────────────────
    # ÉCRITURE
    # ─────────────────────────────────────────

    def add(self, customer: Customer) -> Customer:
        with self._lock:
            if self._index_of(customer.id) is not None:
                raise ValidationError(f"Customer {customer.id} already exists.")
            self._customers.insert(0, customer)

        logger.debug(f"[store] client ajouté : {customer.id}")
        self._emit(StoreEvent(CUSTOMER_ADDED, (customer.id,)))
        return customer

    def add_many(self, customers: Iterable[Customer]) -> list[Customer]:
        """
        Ajout en lot (import CSV) : tout ou rien.
        Les nouveaux clients passent en tête, dans l'ordre du fichier.
        """
        batch = list(customers)
        ids = [c.id for c in batch]

        with self._lock:
            existing = {c.id for c in self._customers}
            if len(set(ids)) != len(ids) or existing.intersection(ids):
                raise ValidationError("Duplicate customer ids in batch.")
            self._customers[0:0] = batch

        logger.info(f"[store] {len(batch)} clients importés")
        self._emit(StoreEvent(CUSTOMERS_IMPORTED, tuple(ids)))
        return batch

    def replace(self, customer: Customer) -> Customer:
        with self._lock:
            index = self._index_of(customer.id)
            if index is None:
                raise NotFoundError(f"Customer {customer.id} not found.")
            self._customers[index] = customer

        logger.debug(f"[store] client mis à jour : {customer.id}")
        self._emit(StoreEvent(CUSTOMER_UPDATED, (customer.id,)))
        return customer

    def delete(self, customer_id: str) -> None:
        with self._lock:
            index = self._index_of(customer_id)
            if index is None:
                raise NotFoundError(f"Customer {customer_id} not found.")
            del self._customers[index]

        logger.info(f"[store] client supprimé : {customer_id}")
        self._emit(StoreEvent(CUSTOMER_DELETED, (customer_id,)))

    def clear(self) -> None:
        with self._lock:
            self._customers = []

    def apply(self, customer_id: str, operation: Callable, *args, **kwargs) -> Customer:
        """
        Lit le client, applique une opération pure du lifecycle,
        remplace l'enregistrement.

        Si l'opération lève une exception, rien n'est stocké.
        Si elle retourne le même objet (no-op), aucun événement n'est émis.
        """
        with self._lock:
            current = self.get(customer_id)
            updated = operation(current, *args, **kwargs)

            if updated is current:
                return current

            return self.replace(updated)

    # ─────────────────────────────────────────
    # ABONNEMENTS
    # ─────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Retourne une fonction de désabonnement."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: StoreEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # Un abonné en erreur ne doit jamais annuler une mutation déjà faite
                logger.error(f"[store] Erreur listener sur {event.type} : {e}")

    def _index_of(self, customer_id: str) -> Optional[int]:
        for index, customer in enumerate(self._customers):
            if customer.id == customer_id:
                return index
        return None


# Instance unique du process, utilisée par l'API
store = CustomerStore()
