from datetime import datetime, timezone
from newton.extensions import db


class Note(db.Model):
    __tablename__ = "notes"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    upload_id = db.Column(db.Integer, db.ForeignKey("uploads.id"), nullable=True)
    title = db.Column(db.String(200), nullable=False, default="Untitled Note")
    description = db.Column(db.String(500), default="")
    content = db.Column(db.Text, default="")  # markdown study notes
    transcript = db.Column(db.Text, nullable=True)  # extracted source text
    source_type = db.Column(db.String(20), nullable=True)  # pdf / audio / youtube / prompt
    youtube_url = db.Column(db.String(500), nullable=True)
    quiz_questions = db.Column(db.JSON(none_as_null=True), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    upload = db.relationship("Upload", backref=db.backref("notes", lazy="dynamic"))
    flashcards = db.relationship("Flashcard", backref="note", lazy="dynamic", cascade="all, delete-orphan",
                                 order_by="Flashcard.id")

    def has_content(self):
        return bool(self.content and self.content.strip())

    def to_dict(self, include_transcript=False):
        d = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "source_type": self.source_type,
            "youtube_url": self.youtube_url,
            "upload_id": self.upload_id,
            "quiz_questions": self.quiz_questions,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_transcript:
            d["transcript"] = self.transcript
        return d
