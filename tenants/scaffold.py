"""
Creates the package skeleton for a new tenant. tenants.registry discovers
any directory with a blocks.py, so nothing else has to be edited.

Usage:
    scaffold-tenant <tenant_code>
"""
import argparse
import logging
import re
import sys
from pathlib import Path
from typing import List

from storage.config import setup_logging

from .registry import TENANTS_DIR

setup_logging()
logger = logging.getLogger(__name__)

TENANT_CODE_PATTERN = re.compile(r"^[a-z0-9]+$")

BLOCKS_TEMPLATE = '''"""Block kinds for the {code} tenant."""
from blocks.schema import BlockKind, FieldSchema, FieldType

TENANT_CODE = "{code}"

# Add BlockKind(slug=f"{{TENANT_CODE}}.<name>", fields=[...]) entries here
BLOCKS = []
'''

RENDERERS_TEMPLATE = '''"""HTML renderers for the {code} tenant blocks."""
from pathlib import Path

from .blocks import TENANT_CODE

TEMPLATE_DIR = str(Path(__file__).parent / "templates")

# f"{{TENANT_CODE}}.<name>": render_<name>
RENDERERS = {{}}
'''


class ScaffoldError(Exception):
    pass


def scaffold_tenant(tenant_code: str, base_dir: Path = TENANTS_DIR) -> List[Path]:
    if not TENANT_CODE_PATTERN.match(tenant_code or ""):
        raise ScaffoldError(f'Invalid tenant code: "{tenant_code}". Must be lowercase alphanumeric only.')

    tenant_dir = Path(base_dir) / tenant_code
    if tenant_dir.exists():
        raise ScaffoldError(f'Tenant "{tenant_code}" already exists at {tenant_dir}')

    (tenant_dir / "templates").mkdir(parents=True)
    created = []
    for name, template in (("blocks.py", BLOCKS_TEMPLATE), ("renderers.py", RENDERERS_TEMPLATE)):
        path = tenant_dir / name
        path.write_text(template.format(code=tenant_code), encoding="utf-8")
        logger.info(f"Created {path}")
        created.append(path)
    return created


def main(argv=None):
    parser = argparse.ArgumentParser(description="Scaffold a new tenant package")
    parser.add_argument("tenant_code", help="Lowercase alphanumeric tenant code")
    args = parser.parse_args(argv)

    try:
        scaffold_tenant(args.tenant_code)
    except ScaffoldError as e:
        logger.critical(f"{e}")
        sys.exit(1)

    logger.info(f'Tenant "{args.tenant_code}" scaffolded successfully!')
    logger.info(f"Next: define block kinds in tenants/{args.tenant_code}/blocks.py")


if __name__ == "__main__":
    main()
