"""Well-known deployment variables captured on every run.

The list depends on the deployment product: a Configuration Manager task
sequence always publishes ``_SMSTSPackageID``; without it the run is
treated as a standalone MDT deployment.
"""

from __future__ import annotations

import base64
import binascii
import logging
import xml.etree.ElementTree as ET
from enum import Enum

from ._sources import VariableSource


logger = logging.getLogger(__name__)


class DeploymentProduct(str, Enum):
    CONFIGMGR = "ConfigMgr"
    MDT = "MDT"


PRODUCT_MARKER = "_SMSTSPackageID"

CONFIGMGR_VARIABLES: tuple[str, ...] = (
    "_SMSTSAdvertID",
    "_SMSTSAssignedSiteCode",
    "_SMSTSBootImageID",
    "_SMSTSBootUEFI",
    "_SMSTSClientGUID",
    "_SMSTSInWinPE",
    "_SMSTSLaunchMode",
    "_SMSTSMachineName",
    "_SMSTSMediaType",
    "_SMSTSMP",
    "_SMSTSOrgName",
    "_SMSTSPackageID",
    "_SMSTSPackageName",
    "_SMSTSSiteCode",
    "_SMSTSUserStarted",
    "OSDComputerName",
)

MDT_VARIABLES: tuple[str, ...] = (
    "BuildID",
    "BuildName",
    "DeployRoot",
    "DeploymentMethod",
    "DeploymentType",
    "ImageBuild",
    "ImageFlags",
    "IsUEFI",
    "IsVM",
    "Make",
    "Model",
    "OSDComputerName",
    "OSVersion",
    "SerialNumber",
    "TaskSequenceID",
    "TaskSequenceName",
    "TaskSequenceVersion",
    "UUID",
    "_SMSTSOrgName",
)

TASK_SEQUENCE_XML = "_SMSTSTaskSequence"
ENCODED_USER_ID = "UserID"


def detect_product(source: VariableSource) -> DeploymentProduct:
    marker = source.get(PRODUCT_MARKER)
    if marker is not None and marker.strip():
        return DeploymentProduct.CONFIGMGR
    return DeploymentProduct.MDT


def default_names(product: DeploymentProduct) -> tuple[str, ...]:
    if product == DeploymentProduct.CONFIGMGR:
        return CONFIGMGR_VARIABLES
    return MDT_VARIABLES


def task_sequence_version(xml_text: str | None) -> str | None:
    """Read the ``version`` attribute of a task sequence XML document."""
    if not xml_text or not xml_text.strip():
        return None
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        logger.warning("Task sequence XML is not well formed: %s", e)
        return None
    return root.get("version")


def decode_user_id(encoded: str | None) -> str | None:
    """Decode the base64 ``UserID`` value MDT stores."""
    if not encoded or not encoded.strip():
        return None
    try:
        return base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        logger.warning("Cannot decode %s: %s", ENCODED_USER_ID, e)
        return None


PRODUCT_LABEL = "DeploymentProduct"


def derived_variables(
    source: VariableSource, product: DeploymentProduct
) -> list[tuple[str, str]]:
    """Values decoded from environment variables rather than read as is.

    Returns ``(name, raw_value)`` pairs; names are already clean.  The
    product label is not included: it says nothing about the environment
    on its own.
    """
    computed: list[tuple[str, str]] = []
    if product == DeploymentProduct.CONFIGMGR:
        version = task_sequence_version(source.get(TASK_SEQUENCE_XML))
        if version is not None:
            computed.append(("TaskSequenceVersion", version))
    user_id = decode_user_id(source.get(ENCODED_USER_ID))
    if user_id is not None:
        computed.append(("DeploymentUserID", user_id))
    return computed
