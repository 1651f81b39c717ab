from __future__ import annotations

from ..extensions import db


class CardCounts(db.Model):
    """
    Running count of successful charges, total and per card brand.

    Singleton (id=1). version_id gives optimistic locking: a writer whose
    read is stale gets StaleDataError on flush and retries.
    """
    __tablename__ = "card_counts"

    id = db.Column(db.Integer, primary_key=True, default=1)

    total = db.Column(db.Integer, nullable=False, default=0)
    visa = db.Column(db.Integer, nullable=False, default=0)
    american_express = db.Column(db.Integer, nullable=False, default=0)
    master_card = db.Column(db.Integer, nullable=False, default=0)
    discover = db.Column(db.Integer, nullable=False, default=0)
    jcb = db.Column(db.Integer, nullable=False, default=0)
    diners_club = db.Column(db.Integer, nullable=False, default=0)
    unknown = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "visa": self.visa,
            "american_express": self.american_express,
            "master_card": self.master_card,
            "discover": self.discover,
            "jcb": self.jcb,
            "diners_club": self.diners_club,
            "unknown": self.unknown,
        }
