# This file makes this directory a package.
# We import and expose what's needed at a top-level.

from .db import Base, DATABASE_URL, create_engine_and_session, init_db
from .entities import WalletKey

# Now other modules can do `from vault.models import init_db, WalletKey`
# rather than importing directly from each submodule.
