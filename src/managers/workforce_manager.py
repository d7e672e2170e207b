"""Company, team and worker lookups for the eligibility engine."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import joinedload

from src.models import Company, Person, PersonRole, Team, WorkerContext
from src.utils.database import session_scope

logger = logging.getLogger(__name__)


@dataclass
class CompanyContext:
    """Company fields needed for calendar decisions."""

    id: str
    name: str
    timezone: str


class WorkforceManager:
    """Read-only access to companies, teams and workers."""

    def __init__(self, session_factory=None):
        self._session_scope = session_factory or session_scope

    def get_active_companies(self) -> List[CompanyContext]:
        with self._session_scope() as session:
            companies = (
                session.query(Company)
                .filter(Company.is_active.is_(True))
                .order_by(Company.name.asc())
                .all()
            )
            return [CompanyContext(id=c.id, name=c.name, timezone=c.timezone) for c in companies]

    def get_company(self, company_id: str) -> Optional[CompanyContext]:
        with self._session_scope() as session:
            company = session.query(Company).filter(Company.id == company_id).first()
            if company is None:
                return None
            return CompanyContext(id=company.id, name=company.name, timezone=company.timezone)

    def get_active_workers(self, company_id: str) -> List[WorkerContext]:
        """Active workers on active teams of the company."""
        with self._session_scope() as session:
            persons = (
                session.query(Person)
                .join(Team, Person.team_id == Team.id)
                .options(joinedload(Person.team).joinedload(Team.leader))
                .filter(
                    Person.company_id == company_id,
                    Person.is_active.is_(True),
                    Person.role == PersonRole.WORKER,
                    Team.is_active.is_(True),
                )
                .all()
            )
            workers = [WorkerContext.from_orm(person) for person in persons]

        logger.debug(f"Loaded {len(workers)} active workers for company {company_id}")
        return workers

    def get_worker(self, person_id: str) -> Optional[WorkerContext]:
        """Any person, with team schedule if assigned to an active team."""
        with self._session_scope() as session:
            person = (
                session.query(Person)
                .options(joinedload(Person.team).joinedload(Team.leader))
                .filter(Person.id == person_id, Person.is_active.is_(True))
                .first()
            )
            return WorkerContext.from_orm(person)

    def update_team_schedule(
        self, team_id: str, work_days: str, check_in_start: str, check_in_end: str
    ) -> bool:
        """Replace a team's default schedule. Returns False if the team does not exist."""
        with self._session_scope() as session:
            team = session.query(Team).filter(Team.id == team_id).first()
            if team is None:
                return False

            team.work_days = work_days
            team.check_in_start = check_in_start
            team.check_in_end = check_in_end

        logger.info(f"Updated schedule of team {team_id}: {work_days} {check_in_start}-{check_in_end}")
        return True

    def update_person_schedule(
        self,
        person_id: str,
        work_days: Optional[str] = None,
        check_in_start: Optional[str] = None,
        check_in_end: Optional[str] = None,
    ) -> bool:
        """Replace a person's schedule override. None clears a field back to the team default."""
        with self._session_scope() as session:
            person = session.query(Person).filter(Person.id == person_id).first()
            if person is None:
                return False

            person.work_days = work_days
            person.check_in_start = check_in_start
            person.check_in_end = check_in_end

        logger.info(f"Updated schedule override of person {person_id}")
        return True
