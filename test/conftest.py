import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class NotFoundIdentifier:
    """Identification collaborator that never finds anything."""

    def __init__(self):
        self.barcodes: list[str] = []

    def identify_barcode(self, code: str):
        from instabill.domain.errors import ItemUnresolvedError

        self.barcodes.append(code)
        raise ItemUnresolvedError(code)

    def identify_image(self, image_data: str):
        from instabill.domain.errors import FeatureUnavailableError

        raise FeatureUnavailableError("vision disabled")


def build_app(tmp_path: Path, db_name: str = "instabill.db", identifier=None, clock=None, **kwargs):
    from instabill.application.container import build_container

    return build_container(
        tmp_path / db_name,
        identifier=identifier or NotFoundIdentifier(),
        clock=clock or FakeClock(),
        **kwargs,
    )
