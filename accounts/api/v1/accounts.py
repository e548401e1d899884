# accounts/api/v1/accounts.py

from typing import Optional

from fastapi import APIRouter, Depends

from ...api.deps import get_account_deletion_workflow, get_caller, get_profile_store
from ...core.exceptions import UnauthorizedError
from ...repositories.profile_store import ProfileStore
from ...schemas.account import AccountDeletedOut, AccountOut
from ...schemas.profile import ProfileOut
from ...services.account_deletion import AccountDeletionWorkflow, CallerIdentity

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("/me", response_model=AccountOut)
def get_my_account(
    caller: Optional[CallerIdentity] = Depends(get_caller),
    store: ProfileStore = Depends(get_profile_store),
):
    """ログイン中のアカウント情報（プロフィールがあれば一緒に返す）"""
    if caller is None:
        raise UnauthorizedError()

    profile = store.find_by_external_identity_id(caller.external_id)
    return AccountOut(
        externalId=caller.external_id,
        email=caller.email,
        username=caller.username,
        hasProfile=profile is not None,
        profile=ProfileOut.model_validate(profile) if profile is not None else None,
    )


@router.delete("/me", response_model=AccountDeletedOut)
def delete_my_account(
    caller: Optional[CallerIdentity] = Depends(get_caller),
    workflow: AccountDeletionWorkflow = Depends(get_account_deletion_workflow),
):
    """
    GDPR のアカウント削除。
    認証済みであれば、下流（Keycloak / DB / Redis）の失敗に関係なく 200 を返す。
    """
    result = workflow.run(caller)
    return AccountDeletedOut(
        message="Account deleted successfully",
        externalId=result.external_id,
        deletedAt=result.deleted_at,
    )
