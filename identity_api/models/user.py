import enum
import uuid
from sqlalchemy import Boolean, Column, String, TIMESTAMP, Uuid, Enum as SAEnum
from sqlalchemy.sql import expression, func
from identity_api.database import Base


class Gender(str, enum.Enum):
    male = "male"
    female = "female"
    non_binary = "non-binary"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    name = Column(String(100), nullable=False)
    # Unique index is the final arbiter when two signups race for the same email
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    gender = Column(
        SAEnum(Gender, name="gender", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Gender.male,
    )
    avatar_url = Column(String(500), nullable=True)

    # Address
    state = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    postal_code = Column(String(12), nullable=True)
    is_address_complete = Column(
        Boolean, default=False, server_default=expression.false(), nullable=False
    )

    # Timestamps
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def has_full_address(self) -> bool:
        return bool(self.state and self.city and self.postal_code)
