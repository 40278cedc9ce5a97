"""
/device — attach a browser client and report what the lock can enforce on it.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from ...api.schemas import AttachRequest, DeviceInfoOut, DeviceReportOut
from ...errors import AlreadyActiveError, NoClientAttachedError

router = APIRouter(prefix="/device", tags=["device"])


def _get_controller(request: Request):
    return request.app.state.controller


@router.post("/attach", response_model=DeviceInfoOut)
def attach(req: AttachRequest, controller=Depends(_get_controller)):
    """Register the client's user agent and feature set; classification is fixed from here on."""
    try:
        info = controller.attach(
            user_agent=req.user_agent,
            features=req.features,
            rejections=req.rejections,
            notification_permission=req.notification_permission,
        )
    except AlreadyActiveError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return DeviceInfoOut(**info.to_dict())


@router.get("", response_model=DeviceReportOut)
def get_device(controller=Depends(_get_controller)):
    try:
        return controller.device_report()
    except NoClientAttachedError as e:
        raise HTTPException(status_code=409, detail=str(e))
