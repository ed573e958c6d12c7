from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, BigInteger, Index
from .database import Base


class Link(Base):
    """Persisted form of a Mapping."""
    
    __tablename__ = "links"
    
    id = Column(String(64), primary_key=True)
    short_code = Column(String(20), unique=True, nullable=False, index=True)
    original_url = Column(Text, nullable=False)
    custom_alias = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    click_count = Column(BigInteger, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    
    __table_args__ = (
        Index('idx_expires_at', 'expires_at'),
    )
    
    def __repr__(self):
        return f"<Link(code={self.short_code}, url={self.original_url[:50]}...)>"


class Click(Base):
    """Persisted form of a ClickEvent; id preserves append order."""
    
    __tablename__ = "clicks"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    short_code = Column(String(20), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    ip = Column(String(45), nullable=False)  # IPv6 can be up to 45 chars
    user_agent = Column(Text, nullable=False, default="")
    
    def __repr__(self):
        return f"<Click(code={self.short_code}, at={self.timestamp})>"
