from sqlalchemy import Column, Integer, String, Text, DateTime
from datetime import datetime
from database import Base
from config.settings import ROLE_USER


class User(Base):
    """
    User account. Email is unique; the password is only ever stored hashed.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=True)
    fullname = Column(String, nullable=True)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_USER)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def display_name(self):
        return self.fullname or self.name

    def public_dict(self) -> dict:
        return {
            "fullname": self.display_name,
            "email": self.email,
            "role": self.role,
        }


class Project(Base):
    """
    Project record created through the add-project upload form.
    """
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    departments = Column(String, nullable=True)
    type = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    partners = Column(String, nullable=True)
    responsible_person = Column(String, nullable=True)
    responsible_email = Column(String, nullable=True)
    year = Column(String, nullable=True)
    status = Column(String, nullable=True)
    location = Column(String, nullable=True)
    # Generated upload filename (not a path), or None when no image was sent
    image = Column(String, nullable=True, default=None)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "departments": self.departments,
            "type": self.type,
            "description": self.description,
            "partners": self.partners,
            "responsiblePerson": self.responsible_person,
            "responsibleEmail": self.responsible_email,
            "year": self.year,
            "status": self.status,
            "location": self.location,
            "image": self.image,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    author = Column(String, nullable=True)
    image = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "author": self.author,
            "image": self.image,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
