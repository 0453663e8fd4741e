"""SQLAlchemy models for the guest face service."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Collection(Base):
    """Collection (event) grouping photos; the scope of every search."""

    __tablename__ = "collections"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="External system collection identifier"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow
    )

    photos: Mapped[list["Photo"]] = relationship(
        back_populates="collection",
        cascade="all, delete-orphan"
    )


class Photo(Base):
    """Event photo whose detected faces are stored."""

    __tablename__ = "photos"
    __table_args__ = (
        Index("idx_photos_collection", "collection_id"),
    )

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="External system photo identifier"
    )
    collection_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("collections.id", ondelete="CASCADE"),
        nullable=False
    )
    url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Display URL of the photo"
    )
    is_hidden: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow
    )

    collection: Mapped[Collection] = relationship(back_populates="photos")
    faces: Mapped[list["PhotoFace"]] = relationship(
        back_populates="photo",
        cascade="all, delete-orphan",
        order_by="PhotoFace.position"
    )


class PhotoFace(Base):
    """One detected face of a photo with its embedding."""

    __tablename__ = "photo_faces"
    __table_args__ = (
        Index("idx_photo_faces_photo", "photo_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    photo_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("photos.id", ondelete="CASCADE"),
        nullable=False
    )
    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Order of the face within its photo's detections"
    )
    embedding: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Face embedding in bracketed text form"
    )
    box_x: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    box_y: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    box_width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    box_height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow
    )

    photo: Mapped[Photo] = relationship(back_populates="faces")
