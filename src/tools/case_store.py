"""
Case Store - case records in the `cases` table

Each case belongs to the account that created it and is only listed for that
account. Dates are kept as ISO date strings, stage history as a JSON array.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional

from config.database import SupabaseTables
from src.tools.supabase_tool import (
    SupabaseTool,
    utc_now,
    to_timestamp,
    parse_timestamp,
)
from src.utils.exceptions import StorageFailure

logger = logging.getLogger(__name__)


@dataclass
class Case:
    """A legal matter tracked through numbered stages"""
    id: str
    owner_account_id: str
    title: str
    client: str = ""
    opposing_party: str = ""
    lawyer: str = ""
    court: str = ""
    judge: str = ""
    jurisdiction: str = ""
    filing_date: Optional[str] = None
    next_hearing_date: Optional[str] = None
    current_stage: int = 0
    completed_stages: List[int] = field(default_factory=list)
    stage_history: List[Dict[str, Any]] = field(default_factory=list)
    last_update_date: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Case":
        return cls(
            id=str(row["id"]),
            owner_account_id=str(row["owner_account_id"]),
            title=row.get("title") or "",
            client=row.get("client") or "",
            opposing_party=row.get("opposing_party") or "",
            lawyer=row.get("lawyer") or "",
            court=row.get("court") or "",
            judge=row.get("judge") or "",
            jurisdiction=row.get("jurisdiction") or "",
            filing_date=row.get("filing_date"),
            next_hearing_date=row.get("next_hearing_date"),
            current_stage=int(row.get("current_stage") or 0),
            completed_stages=list(row.get("completed_stages") or []),
            stage_history=list(row.get("stage_history") or []),
            last_update_date=row.get("last_update_date"),
            created_at=parse_timestamp(row.get("created_at")) or utc_now(),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner_account_id": self.owner_account_id,
            "title": self.title,
            "client": self.client,
            "opposing_party": self.opposing_party,
            "lawyer": self.lawyer,
            "court": self.court,
            "judge": self.judge,
            "jurisdiction": self.jurisdiction,
            "filing_date": self.filing_date,
            "next_hearing_date": self.next_hearing_date,
            "current_stage": self.current_stage,
            "completed_stages": self.completed_stages,
            "stage_history": self.stage_history,
            "last_update_date": self.last_update_date,
            "created_at": to_timestamp(self.created_at),
        }

    def to_dict(self) -> Dict[str, Any]:
        return self.to_row()


def new_case_id() -> str:
    return str(uuid.uuid4())


class CaseStore(SupabaseTool):
    """Case records backed by the Supabase `cases` table"""

    TABLE = SupabaseTables.CASES

    async def create(self, case: Case) -> Case:
        row = case.to_row()
        result = await self._execute(
            lambda: self.table().insert(row).execute(),
            "creating case"
        )
        if not result.data:
            raise StorageFailure("Storage error while creating case")

        logger.info(f"Created case {case.id} for account {case.owner_account_id}")
        return Case.from_row(result.data[0])

    async def list_for_owner(self, account_id: str) -> List[Case]:
        """Cases created by an account, newest first"""
        if not account_id:
            return []
        result = await self._execute(
            lambda: self.table()
                .select("*")
                .eq("owner_account_id", account_id)
                .order("created_at", desc=True)
                .execute(),
            "listing cases"
        )
        return [Case.from_row(row) for row in (result.data or [])]
