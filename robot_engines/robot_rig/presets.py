"""
Robot rig presets.

ARM01: seven rotating joints stacked vertically at the home pose. Joint
order, axes and limits follow the arm asset; link lengths are in meters.
"""
from __future__ import annotations

from robot_engines.robot_rig.schemas import BodyPartSpec, JointSpec, RigDefinition

_LINK_HALF_WIDTH = 0.05


def _link(name: str, joint: str, length: float, half_width: float = _LINK_HALF_WIDTH) -> BodyPartSpec:
    return BodyPartSpec(
        name=name,
        joint=joint,
        local_min=(-half_width, 0.0, -half_width),
        local_max=(half_width, length, half_width),
    )


ARM01_RIG = RigDefinition(
    name="arm01",
    joints=[
        JointSpec(name="Arm01_Base_Rotation", axis="x", origin=(0.0, 0.14, 0.0),
                  min_deg=-90, max_deg=90, label="Robot Base Rotation"),
        JointSpec(name="Arm01_Arm_Rotation", axis="y", parent="Arm01_Base_Rotation",
                  origin=(0.0, 0.30, 0.0), min_deg=-180, max_deg=180),
        JointSpec(name="Arm02_Base_Rotation", axis="x", parent="Arm01_Arm_Rotation",
                  origin=(0.0, 0.10, 0.0), min_deg=-155, max_deg=155),
        JointSpec(name="Arm02_Arm_Rotation", axis="y", parent="Arm02_Base_Rotation",
                  origin=(0.0, 0.28, 0.0), min_deg=-180, max_deg=180),
        JointSpec(name="Arm03_Base_Rotation", axis="x", parent="Arm02_Arm_Rotation",
                  origin=(0.0, 0.10, 0.0), min_deg=-180, max_deg=180),
        JointSpec(name="Arm03_End_Rotation", axis="y", parent="Arm03_Base_Rotation",
                  origin=(0.0, 0.24, 0.0), min_deg=-180, max_deg=180),
        JointSpec(name="Tip_Rotation", axis="z", parent="Arm03_End_Rotation",
                  origin=(0.0, 0.10, 0.0), min_deg=-180, max_deg=180),
    ],
    body_parts=[
        BodyPartSpec(name="Base_Plate", joint=None, local_min=(-0.18, 0.0, -0.18),
                     local_max=(0.18, 0.08, 0.18), base_owned=True),
        BodyPartSpec(name="Base_Column", joint=None, local_min=(-0.08, 0.08, -0.08),
                     local_max=(0.08, 0.14, 0.08), base_owned=True),
        _link("Arm01_Lower", "Arm01_Base_Rotation", 0.30, 0.06),
        _link("Arm01_Upper", "Arm01_Arm_Rotation", 0.10),
        _link("Arm02_Lower", "Arm02_Base_Rotation", 0.28),
        _link("Arm02_Upper", "Arm02_Arm_Rotation", 0.10),
        _link("Arm03_Lower", "Arm03_Base_Rotation", 0.24, 0.045),
        _link("Arm03_Upper", "Arm03_End_Rotation", 0.10, 0.04),
        _link("Tip", "Tip_Rotation", 0.06, 0.03),
    ],
)
