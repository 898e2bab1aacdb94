"""
FastAPI routes for the robot simulation session.

The host (a render loop or a test) drives time through POST /step; every
other endpoint reads or edits the shared session state.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends

from robot_engines.animation_timeline.models import AnimationDefinition
from robot_engines.common.error_envelope import error_response, raise_engine_error, validation_error
from robot_engines.common.errors import RobotEnginesError
from robot_engines.config.runtime_config import config_snapshot
from robot_engines.obstacles.models import ObstacleCreateRequest, ObstacleState, ObstacleUpdateRequest
from robot_engines.playback_core.models import PlaybackOptions, PlaybackOptionsPatch, TickOutcome
from robot_engines.playback_core.scheduler import ERR_NOT_FOUND
from robot_engines.robot_rig.schemas import JointState
from robot_engines.sim_session.schemas import (
    BasePoseRequest,
    CollisionStateResponse,
    NudgeRequest,
    JointSetRequest,
    PlaybackStartRequest,
    PlaybackStateResponse,
    PlaybackStopRequest,
    ReportResponse,
    RobotStateResponse,
    StepRequest,
)
from robot_engines.sim_session.service import SimulationService, get_sim_service

router = APIRouter(prefix="/robot-sim", tags=["robot_sim"])


def _robot_state(service: SimulationService) -> RobotStateResponse:
    robot = service.store.robot
    return RobotStateResponse(
        joints=robot.joints(),
        base_position=[float(v) for v in robot.base_position],
        base_yaw_rad=robot.base_yaw_rad,
    )


def _playback_state(service: SimulationService) -> PlaybackStateResponse:
    store = service.store
    return PlaybackStateResponse(
        state=store.playback,
        options=store.options,
        sim_time=store.sim_time,
        last_stop_reason=service.scheduler.last_stop_reason,
    )


@router.get("/health")
async def health() -> Dict[str, Any]:
    return {"status": "ok", "config": config_snapshot()}


# --- Robot ---

@router.get("/robot", response_model=RobotStateResponse)
async def get_robot(service: SimulationService = Depends(get_sim_service)) -> RobotStateResponse:
    return _robot_state(service)


@router.get("/joints", response_model=List[JointState])
async def list_joints(service: SimulationService = Depends(get_sim_service)) -> List[JointState]:
    return service.joints()


@router.put("/joints/{name}", response_model=JointState)
async def set_joint(
    name: str,
    request: JointSetRequest,
    service: SimulationService = Depends(get_sim_service),
) -> JointState:
    try:
        return service.set_joint(name, request.angle_deg)
    except RobotEnginesError as exc:
        raise_engine_error(exc, "joint")


@router.post("/joints/{name}/nudge", response_model=JointState)
async def nudge_joint(
    name: str,
    request: NudgeRequest,
    service: SimulationService = Depends(get_sim_service),
) -> JointState:
    try:
        return service.nudge_joint(name, request.direction)
    except RobotEnginesError as exc:
        raise_engine_error(exc, "joint")


@router.put("/robot/base", response_model=RobotStateResponse)
async def set_base_pose(
    request: BasePoseRequest,
    service: SimulationService = Depends(get_sim_service),
) -> RobotStateResponse:
    service.set_base_pose(x=request.x, z=request.z, yaw_deg=request.yaw_deg)
    return _robot_state(service)


@router.post("/robot/base/nudge", response_model=RobotStateResponse)
async def nudge_base_yaw(
    request: NudgeRequest,
    service: SimulationService = Depends(get_sim_service),
) -> RobotStateResponse:
    service.nudge_base_yaw(request.direction)
    return _robot_state(service)


@router.post("/robot/reset", response_model=RobotStateResponse)
async def reset_robot(service: SimulationService = Depends(get_sim_service)) -> RobotStateResponse:
    service.reset_robot()
    return _robot_state(service)


# --- Obstacles ---

@router.get("/obstacles", response_model=List[ObstacleState])
async def list_obstacles(service: SimulationService = Depends(get_sim_service)) -> List[ObstacleState]:
    return service.list_obstacles()


@router.post("/obstacles", response_model=ObstacleState, status_code=201)
async def add_obstacle(
    request: Optional[ObstacleCreateRequest] = None,
    service: SimulationService = Depends(get_sim_service),
) -> ObstacleState:
    request = request or ObstacleCreateRequest()
    return service.add_obstacle(size=request.size, name=request.name)


@router.delete("/obstacles", status_code=204)
async def clear_obstacles(service: SimulationService = Depends(get_sim_service)) -> None:
    service.clear_obstacles()


@router.patch("/obstacles/{obstacle_id}", response_model=ObstacleState)
async def update_obstacle(
    obstacle_id: str,
    request: ObstacleUpdateRequest,
    service: SimulationService = Depends(get_sim_service),
) -> ObstacleState:
    try:
        return service.update_obstacle(
            obstacle_id, position=request.position, rotation=request.rotation, size=request.size
        )
    except RobotEnginesError as exc:
        raise_engine_error(exc, "obstacle")


@router.delete("/obstacles/{obstacle_id}", status_code=204)
async def delete_obstacle(obstacle_id: str, service: SimulationService = Depends(get_sim_service)) -> None:
    try:
        service.remove_obstacle(obstacle_id)
    except RobotEnginesError as exc:
        raise_engine_error(exc, "obstacle")


# --- Animations ---

@router.get("/animations", response_model=List[AnimationDefinition])
async def list_animations(service: SimulationService = Depends(get_sim_service)) -> List[AnimationDefinition]:
    return service.list_animations()


@router.post("/animations", response_model=AnimationDefinition, status_code=201)
async def save_animation(
    animation: AnimationDefinition,
    service: SimulationService = Depends(get_sim_service),
) -> AnimationDefinition:
    result = service.save_animation(animation)
    if not result.ok:
        validation_error(result.error, "animation")
    return result.animation


@router.post("/animations/import", response_model=AnimationDefinition, status_code=201)
async def import_animation(
    payload: Dict[str, Any] = Body(...),
    service: SimulationService = Depends(get_sim_service),
) -> AnimationDefinition:
    result = service.import_animation(payload)
    if not result.ok:
        validation_error(result.error, "animation")
    return result.animation


@router.get("/animations/{animation_id}", response_model=AnimationDefinition)
async def get_animation(animation_id: str, service: SimulationService = Depends(get_sim_service)) -> AnimationDefinition:
    try:
        return service.get_animation(animation_id)
    except RobotEnginesError as exc:
        raise_engine_error(exc, "animation")


@router.delete("/animations/{animation_id}", status_code=204)
async def delete_animation(animation_id: str, service: SimulationService = Depends(get_sim_service)) -> None:
    try:
        service.delete_animation(animation_id)
    except RobotEnginesError as exc:
        raise_engine_error(exc, "animation")


# --- Playback ---

@router.get("/playback", response_model=PlaybackStateResponse)
async def get_playback(service: SimulationService = Depends(get_sim_service)) -> PlaybackStateResponse:
    return _playback_state(service)


@router.post("/playback/start", response_model=PlaybackStateResponse)
async def start_playback(
    request: PlaybackStartRequest,
    service: SimulationService = Depends(get_sim_service),
) -> PlaybackStateResponse:
    result = service.start_playback(request.animation_id)
    if not result.ok:
        if result.error == ERR_NOT_FOUND:
            error_response(
                code="robot_sim.unknown_animation",
                message=result.error,
                status_code=404,
                resource_kind="animation",
            )
        validation_error(result.error, "playback")
    return _playback_state(service)


@router.post("/playback/stop", response_model=PlaybackStateResponse)
async def stop_playback(
    request: Optional[PlaybackStopRequest] = None,
    service: SimulationService = Depends(get_sim_service),
) -> PlaybackStateResponse:
    request = request or PlaybackStopRequest()
    service.stop_playback(request.reason)
    return _playback_state(service)


@router.put("/playback/options", response_model=PlaybackOptions)
async def set_playback_options(
    patch: PlaybackOptionsPatch,
    service: SimulationService = Depends(get_sim_service),
) -> PlaybackOptions:
    return service.set_options(patch)


@router.post("/step", response_model=TickOutcome)
async def step(request: StepRequest, service: SimulationService = Depends(get_sim_service)) -> TickOutcome:
    return service.step(request.dt)


# --- Collision & report ---

@router.get("/collision", response_model=CollisionStateResponse)
async def get_collision(service: SimulationService = Depends(get_sim_service)) -> CollisionStateResponse:
    store = service.store
    detector = service.monitor.obstacle_detector
    tints = {part.name: detector.tint_for(part.name) for part in store.robot.rig.body_parts}
    return CollisionStateResponse(
        collision=store.collision,
        self_collision=store.self_collision,
        part_tints=tints,
    )


@router.get("/report", response_model=ReportResponse)
async def get_report(service: SimulationService = Depends(get_sim_service)) -> ReportResponse:
    return ReportResponse(events=service.store.report, open=service.store.report_open)


@router.post("/report/close", response_model=ReportResponse)
async def close_report(service: SimulationService = Depends(get_sim_service)) -> ReportResponse:
    service.close_report()
    return ReportResponse(events=service.store.report, open=service.store.report_open)


@router.delete("/report", response_model=ReportResponse)
async def clear_report(service: SimulationService = Depends(get_sim_service)) -> ReportResponse:
    service.clear_report()
    return ReportResponse(events=service.store.report, open=service.store.report_open)
