from sqlalchemy import Column, String, Integer, ForeignKey, UUID, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import BaseModel


class Notebook(BaseModel):
    __tablename__ = "notebooks"
    
    title = Column(String(255), nullable=False)
    description = Column(String(200), default="", nullable=False)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False, index=True)
    version = Column(Integer, default=1, nullable=False)
    
    # Relationships
    owner = relationship("User", back_populates="owned_notebooks")
    pages = relationship("Page", back_populates="notebook", cascade="all, delete-orphan", passive_deletes=True)
    collaborators = relationship("Collaborator", back_populates="notebook", cascade="all, delete-orphan", passive_deletes=True)


class Page(BaseModel):
    __tablename__ = "pages"
    
    notebook_id = Column(UUID(as_uuid=True), ForeignKey("notebooks.uuid", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(UUID(as_uuid=True), ForeignKey("pages.uuid", ondelete="CASCADE"), nullable=True)
    title = Column(String(255), nullable=False)
    order = Column(Integer, default=0, nullable=False)
    
    # Relationships
    notebook = relationship("Notebook", back_populates="pages")


class Collaborator(BaseModel):
    __tablename__ = "collaborators"
    __table_args__ = (
        UniqueConstraint("notebook_id", "user_id", name="uq_collaborators_notebook_user"),
    )
    
    notebook_id = Column(UUID(as_uuid=True), ForeignKey("notebooks.uuid", ondelete="CASCADE"), nullable=False, index=True)
    # NULL, пока приглашение по email ожидает регистрации
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=True, index=True)
    email = Column(String(255), nullable=True, index=True)
    username = Column(String(100), nullable=False, default="")
    
    # Relationships
    notebook = relationship("Notebook", back_populates="collaborators")
    user = relationship("User")
