"""
Armazenamento da credencial de sessao.

A credencial e um blob opaco em disco (um diretorio com session.json).
O driver le e grava; o SessionManager apenas apaga, para forcar nova
autenticacao quando a credencial fica invalida.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

BLOB_FILENAME = "session.json"


class CredentialStore:
    """Blob de credencial num caminho do filesystem."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @property
    def blob_path(self) -> Path:
        return self.path / BLOB_FILENAME

    def exists(self) -> bool:
        return self.blob_path.is_file()

    def read(self) -> Optional[dict]:
        """Le o blob. Retorna None se ausente ou corrompido."""
        try:
            data = json.loads(self.blob_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"[Credentials] Blob ilegivel em {self.blob_path}: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"[Credentials] Blob em formato inesperado: {self.blob_path}")
            return None
        return data

    def write(self, data: dict) -> None:
        self.path.mkdir(parents=True, exist_ok=True)
        self.blob_path.write_text(json.dumps(data), encoding="utf-8")

    def clear(self) -> None:
        """
        Apaga o blob (best-effort).

        Ausencia previa nao e erro. Outras falhas de IO sao logadas e
        ignoradas para nao travar a maquina de estados.
        """
        try:
            if self.path.is_dir():
                shutil.rmtree(self.path)
            else:
                self.path.unlink()
            logger.info(f"[Credentials] Sessao removida: {self.path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[Credentials] Falha ao remover {self.path}: {e}")
