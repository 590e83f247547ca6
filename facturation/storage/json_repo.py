from __future__ import annotations

import glob
import json
import logging
import shutil
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from facturation.config import COLLECTIONS, data_dir, load_settings
from facturation.storage.repo import Collection, MemoryStore

log = logging.getLogger(__name__)


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    raise TypeError(f"Object of type {o.__class__.__name__} is not JSON serializable")


class JsonStore(MemoryStore):
    """
    Magasin JSON : un fichier <collection>.json par collection dans data_dir.
    - Chargement unique à la construction
    - Rotation de backups (backup_enabled, backup_keep)
    - N'écrit pas si le contenu ne change pas (réduction du bruit et des .bak)
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        *,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)
        self.backup_enabled = backup_enabled
        self.backup_keep = max(0, int(backup_keep))
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for name in COLLECTIONS:
            loaded = self._read_raw(name)
            if loaded is not None:
                self._data[name] = loaded

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    # ---------------- I/O bas niveau ---------------- #

    def _read_raw(self, name: str) -> Optional[Collection]:
        path = self.path_for(name)
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError:
            # Fichier corrompu -> sauvegarde et repart sur collection vide
            backup = path.with_suffix(".corrupt.json")
            shutil.copy2(path, backup)
            log.warning("Collection %s corrompue, copiée dans %s", name, backup)
            return None
        if isinstance(data, (list, dict)):
            return data
        log.warning("Collection %s ignorée : contenu inattendu (%s)", name, type(data).__name__)
        return None

    def _rotate_backups(self, path: Path) -> None:
        if not self.backup_enabled or self.backup_keep <= 0:
            return
        pattern = str(path.with_suffix(".*.bak.json"))
        files = sorted(glob.glob(pattern))
        # garde les plus récents
        for old in files[: max(0, len(files) - self.backup_keep)]:
            Path(old).unlink(missing_ok=True)

    def _stage_raw(self, path: Path, new_dump: str) -> Optional[Path]:
        """Prépare <collection>.tmp ; None si le contenu ne change pas."""
        if path.exists() and path.read_text(encoding="utf-8") == new_dump:
            return None

        # backup
        if self.backup_enabled and path.exists():
            ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
            shutil.copy2(path, path.with_suffix(f".{ts}.bak.json"))
            self._rotate_backups(path)

        tmp = path.with_suffix(".tmp")
        tmp.write_text(new_dump, encoding="utf-8")
        return tmp

    def _persist(self, changes: Mapping[str, Collection]) -> None:
        """
        Ecriture en deux temps : tous les .tmp d'abord, puis les renommages
        enchaînés. Un arrêt pendant la première phase ne touche aucune
        collection. Le système de fichiers n'offre pas de renommage groupé :
        un arrêt entre deux renommages (par exemple payments.json écrit,
        invoices.json pas encore) reste possible, la fenêtre est seulement
        réduite à quelques appels système. Les .bak.json permettent alors de
        revenir à l'état précédent.
        """
        # sérialise tout avant d'écrire : une donnée invalide n'écrit rien
        dumps: Dict[str, str] = {
            name: json.dumps(value, ensure_ascii=False, indent=2, default=_json_default)
            for name, value in changes.items()
        }
        staged: List[Tuple[Path, Path]] = []
        try:
            for name, dump in dumps.items():
                path = self.path_for(name)
                tmp = self._stage_raw(path, dump)
                if tmp is not None:
                    staged.append((tmp, path))
        except OSError:
            for tmp, _ in staged:
                tmp.unlink(missing_ok=True)
            raise
        for tmp, path in staged:
            tmp.replace(path)
            log.debug("Collection %s écrite", path)


def open_default_store() -> JsonStore:
    """Magasin du poste : FACTURATION_DATA_DIR (ou data/) et backup_keep de settings.json."""
    base = data_dir()
    return JsonStore(base, backup_keep=load_settings().backup_keep)
