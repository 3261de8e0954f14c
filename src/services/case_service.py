"""
Case Service - create and list an account's case records

A case moves through numbered stages. Completed stages must not include the
current one, and each stage history entry names the stage it completes.
"""

import logging
from typing import Any, Dict, List, Optional

from src.tools.account_store import Account, ROLE_LAWYER
from src.tools.case_store import Case, CaseStore, new_case_id
from src.tools.supabase_tool import utc_now
from src.utils.exceptions import ValidationFailedError

logger = logging.getLogger(__name__)


class CaseService:
    """Case records owned by the authenticated account"""

    def __init__(self, case_store: CaseStore):
        self.case_store = case_store

    async def create_case(
        self,
        owner: Account,
        title: str,
        current_stage: int = 0,
        completed_stages: Optional[List[int]] = None,
        stage_history: Optional[List[Dict[str, Any]]] = None,
        **details: Optional[str]
    ) -> Case:
        """
        Record a new case for `owner`.

        Args:
            owner: Authenticated account creating the case
            title: Required case title
            current_stage: Stage the case is in now
            completed_stages: Stages already finished
            stage_history: Entries with a stageId and optional completion data
            **details: client, opposing_party, lawyer, court, judge,
                jurisdiction, filing_date, next_hearing_date

        Raises:
            ValidationFailedError: blank title or inconsistent stages
        """
        if title is None or not title.strip():
            raise ValidationFailedError("Case title is required")
        if current_stage < 0:
            raise ValidationFailedError("Stage numbers cannot be negative")

        completed = sorted(set(completed_stages or []))
        if any(stage < 0 for stage in completed):
            raise ValidationFailedError("Stage numbers cannot be negative")
        if current_stage in completed:
            raise ValidationFailedError("The current stage cannot also be completed")

        history = stage_history or []
        if any(entry.get("stageId") is None for entry in history):
            raise ValidationFailedError("Every stage history entry needs a stageId")

        fields = {key: (value or "").strip() for key, value in details.items()
                  if key in ("client", "opposing_party", "lawyer", "court", "judge", "jurisdiction")}
        if not fields.get("lawyer") and owner.role == ROLE_LAWYER:
            fields["lawyer"] = owner.display_name

        now = utc_now()
        case = Case(
            id=new_case_id(),
            owner_account_id=owner.id,
            title=title.strip(),
            filing_date=details.get("filing_date"),
            next_hearing_date=details.get("next_hearing_date"),
            current_stage=current_stage,
            completed_stages=completed,
            stage_history=history,
            last_update_date=now.date().isoformat(),
            created_at=now,
            **fields
        )
        return await self.case_store.create(case)

    async def list_cases(self, owner: Account) -> List[Case]:
        return await self.case_store.list_for_owner(owner.id)
