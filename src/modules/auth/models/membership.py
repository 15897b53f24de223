from sqlalchemy import Column, Integer, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from database import Base

class MemberRole(PyEnum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    MEMBER = "MEMBER"

class Membership(Base):
    __tablename__ = 'memberships'
    __table_args__ = (UniqueConstraint('user_id', 'org_id', name='uq_membership_user_org'),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    org_id = Column(Integer, ForeignKey('organizations.id'), nullable=False)
    role = Column(Enum(MemberRole), nullable=False, default=MemberRole.STAFF)

    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="memberships")
