# accounts/api/v1/profiles.py

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile

from ...api.deps import get_profile_manager, require_caller
from ...schemas.profile import PictureUploadOut, ProfileCreate, ProfileOut, ProfileUpdate
from ...services.account_deletion import CallerIdentity
from ...services.profile_manager import ProfileManager

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("", response_model=list[ProfileOut])
def list_profiles(
    manager: ProfileManager = Depends(get_profile_manager),
):
    """プロフィール一覧取得"""
    return manager.list_profiles()


# ★ /{profile_id} より先に定義しておく
@router.get("/search", response_model=list[ProfileOut])
def search_profiles(
    q: Optional[str] = Query(default=None),
    manager: ProfileManager = Depends(get_profile_manager),
):
    """ユーザー名の部分一致検索（大文字小文字は区別しない）"""
    return manager.search(q)


@router.get("/{profile_id}", response_model=ProfileOut)
def get_profile(
    profile_id: int,
    manager: ProfileManager = Depends(get_profile_manager),
):
    return manager.get(profile_id)


@router.post("", response_model=ProfileOut, status_code=201)
def create_profile(
    data: ProfileCreate,
    caller: CallerIdentity = Depends(require_caller),
    manager: ProfileManager = Depends(get_profile_manager),
):
    """プロフィール新規登録（所有者はリクエストの呼び出し元）"""
    return manager.create(
        caller.external_id,
        username=data.username,
        display_name=data.display_name,
        description=data.description,
    )


@router.put("/{profile_id}", status_code=204)
def update_profile(
    profile_id: int,
    data: ProfileUpdate,
    caller: CallerIdentity = Depends(require_caller),
    manager: ProfileManager = Depends(get_profile_manager),
):
    """表示名・自己紹介の更新（指定された項目のみ）"""
    changes = {}
    if data.display_name is not None:
        changes["display_name"] = data.display_name
    if "description" in data.model_fields_set:
        changes["description"] = data.description
    manager.update_details(profile_id, caller.external_id, **changes)
    return Response(status_code=204)


@router.delete("/{profile_id}", status_code=204)
def delete_profile(
    profile_id: int,
    caller: CallerIdentity = Depends(require_caller),
    manager: ProfileManager = Depends(get_profile_manager),
):
    """物理削除（画像も消す）"""
    manager.delete(profile_id, caller.external_id)
    return Response(status_code=204)


@router.post("/{profile_id}/picture", response_model=PictureUploadOut)
def upload_picture(
    profile_id: int,
    file: Optional[UploadFile] = File(default=None),
    caller: CallerIdentity = Depends(require_caller),
    manager: ProfileManager = Depends(get_profile_manager),
):
    # ファイルの検証はプロフィール取得・所有者チェックの後（manager 側）で行う
    data = file.file.read() if file is not None else b""
    content_type = file.content_type if file is not None else None

    url = manager.upload_picture(profile_id, caller.external_id, data, content_type)
    return PictureUploadOut(message="Uploaded successfully", url=url)
