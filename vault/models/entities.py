from sqlalchemy import Column, Integer, String

from .db import Base
from .mixins import CreatedAtMixin

from ..crypto.keys import KEY_TYPE_ED25519


class WalletKey(CreatedAtMixin, Base):
    """
    One custodial keypair per user. Key material is stored in its typed wire
    encoding, hex-encoded; rows are inserted once and never updated.
    """
    __tablename__ = 'user_theta_native_wallet'
    id = Column(Integer, primary_key=True, index=True)
    userid = Column(String, nullable=False, unique=True, index=True)
    pubkey = Column(String, nullable=False)
    privkey = Column(String, nullable=False)
    address = Column(String, nullable=False, unique=True, index=True)
    key_type = Column(String, nullable=False, default=KEY_TYPE_ED25519)

    def __repr__(self):
        return f"<WalletKey userid={self.userid!r} address={self.address!r}>"
