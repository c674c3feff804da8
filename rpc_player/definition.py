import pathlib
from typing import Any, Dict, Optional

import jinja2
import structlog
import yaml

from rpc_player.context import PlayerContext
from rpc_player.exceptions.config import PlanFileError
from rpc_player.wallets.registry import WalletRegistry

log = structlog.get_logger(__name__)


class PlanDefinition:
    """Interface for a plan `.yml` file.

    The file is rendered as a jinja template with the given `variables` first,
    and only parsed as YAML afterwards. Of its sections only `WALLETS` is
    interpreted here; everything else is kept in :attr:`.sections` for the
    call executor.

    Note that YAML doesn't allow plain scalars starting with ``@``, so
    references have to be quoted::

        params:
          - {type: address, value: "@alice"}
    """

    def __init__(self, yaml_path: pathlib.Path, variables: Optional[Dict[str, Any]] = None):
        self.path = pathlib.Path(yaml_path)
        try:
            with self.path.open() as f:
                yaml_template = jinja2.Template(f.read(), undefined=jinja2.StrictUndefined)
            rendered_yaml = yaml_template.render(**(variables or {}))
            loaded = yaml.safe_load(rendered_yaml)
        except (OSError, jinja2.TemplateError, yaml.YAMLError) as e:
            raise PlanFileError(f"Unable to load plan {self.path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise PlanFileError(f"Plan {self.path} must contain a mapping of sections!")
        self.sections: Dict[str, Any] = loaded
        self.wallets = WalletRegistry.from_definition(loaded)
        log.debug("Loaded plan", plan=self.name, wallets=len(self.wallets))

    @property
    def name(self) -> str:
        """Return the name of the plan file, sans extension."""
        return self.path.stem

    def validate_wallets(self, context: PlayerContext) -> bool:
        return self.wallets.validate(context)
