# errors.py

# ─────────────────────────────────────────
# ERREURS MÉTIER
# Toujours récupérables : l'appelant les affiche,
# aucune mutation n'a eu lieu quand elles sont levées.
# ─────────────────────────────────────────


class CRMError(Exception):
    """Base de toutes les erreurs du CRM."""


class ValidationError(CRMError):
    """Saisie invalide : champ vide, nombre non positif, valeur hors enum."""


class NotFoundError(CRMError):
    """Id inconnu (client supprimé, devis disparu entre-temps...)."""


class CustomerImportError(CRMError):
    """
    Fichier d'import invalide.
    L'import entier est annulé, aucune ligne n'est appliquée.

    row : numéro de ligne fautive (1 = en-tête), None si le fichier
          entier est en cause.
    """

    def __init__(self, message: str, row: int | None = None):
        super().__init__(message)
        self.row = row
