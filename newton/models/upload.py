from datetime import datetime, timezone
from newton.extensions import db


class Upload(db.Model):
    __tablename__ = "uploads"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    filename = db.Column(db.String(255), nullable=False)
    file_type = db.Column(db.String(20), nullable=False)  # "pdf" / "audio"
    file_size_mb = db.Column(db.Float, default=0.0)
    storage_path = db.Column(db.String(500), nullable=False)
    status = db.Column(db.String(20), default="completed")
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "filename": self.filename,
            "file_type": self.file_type,
            "file_size_mb": self.file_size_mb,
            "storage_path": self.storage_path,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
