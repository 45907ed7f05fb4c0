# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# Sans cet import, les FK comme stations.site_id → sites.id échouent
# avec NoReferencedTableError si site.py n'est pas chargé avant station.py.

from app.models.user import User  # noqa: F401  (doit précéder site et intervention)
from app.models.site import Site  # noqa: F401
from app.models.station import Station  # noqa: F401
from app.models.intervention import Intervention  # noqa: F401
from app.models.photo import Photo  # noqa: F401
from app.models.sync_conflict import SyncConflict  # noqa: F401
