import logging
from decimal import Decimal
from typing import Callable, List, Dict, Any, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from unimonitor.core.committee import committee_stats
from unimonitor.core.engine import EligibilityEngine, build_counters
from unimonitor.core.errors import InvalidInput, MissingRecord
from unimonitor.core.models import EligibilityReport, StudentSnapshot
from unimonitor.core.records import InMemoryRecordStore, RecordProvider
from unimonitor.core.repositories import JsonGrantRepository
from unimonitor.core.rule_factory import RuleFactory
from unimonitor.core.settings import settings
from unimonitor.programs.loaders import load_grants, load_records

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

logger = logging.getLogger(__name__)


# --------- Request / response models ----------
class ComputeRequest(BaseModel):
    year: int
    attendance_percentage: Optional[Decimal] = None
    retake_count: int
    pass_count: int


class CriterionOut(BaseModel):
    label: str
    met: bool
    evidence: str


class ReportOut(BaseModel):
    grantType: str
    percentage: int
    status: str
    criteria: List[CriterionOut]


class EligibilityOut(BaseModel):
    goldenMinds: Optional[ReportOut] = None
    unicorn: ReportOut


class ApplicationOut(BaseModel):
    id: str
    student_id: str
    grant_type: str
    academic_year: str
    status: str


def report_to_out(report: Optional[EligibilityReport]) -> Optional[ReportOut]:
    if report is None:
        return None
    return ReportOut(
        grantType=report.grant_type,
        percentage=report.percentage,
        status=report.status,
        criteria=[CriterionOut(label=c.label, met=c.met, evidence=c.evidence) for c in report.criteria],
    )


def results_to_out(results: Dict[str, Optional[EligibilityReport]]) -> Dict[str, Any]:
    return {key: report_to_out(r) for key, r in results.items()}


def create_app(grants_json: List[Dict[str, Any]], records: RecordProvider) -> FastAPI:
    engine = EligibilityEngine(JsonGrantRepository(grants_json, RuleFactory()))

    app = FastAPI(title=settings.API_TITLE)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidInput)
    def invalid_input_handler(_request, exc: InvalidInput):
        logger.warning("Rejected eligibility input: %s", exc)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(MissingRecord)
    def missing_record_handler(_request, exc: MissingRecord):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/grants")
    def grants() -> List[Dict[str, Any]]:
        return [
            {
                "id": g.id,
                "name": g.name,
                "years": sorted(g.years),
                "criteria_count": len(g.rules),
            }
            for g in engine.grants
        ]

    @app.post("/eligibility/compute", response_model=EligibilityOut)
    def compute(req: ComputeRequest):
        try:
            counters = build_counters(req.year, req.attendance_percentage, req.retake_count, req.pass_count)
            return results_to_out(engine.evaluate(counters))
        except InvalidInput:
            raise
        except Exception as e:
            logger.exception("Eligibility compute failed")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Compute failed", "details": str(e)},
            )

    def eligibility_for(load_snapshot: Callable[[], StudentSnapshot], who: str):
        try:
            return results_to_out(engine.evaluate_snapshot(load_snapshot()))
        except (InvalidInput, MissingRecord):
            raise
        except Exception as e:
            logger.exception("Error calculating grant eligibility for %s", who)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Failed to calculate grant eligibility", "details": str(e)},
            )

    @app.get("/students/{student_id}/eligibility", response_model=EligibilityOut)
    def student_eligibility(student_id: str):
        return eligibility_for(lambda: records.snapshot(student_id), student_id)

    @app.get("/users/{user_id}/eligibility", response_model=EligibilityOut)
    def user_eligibility(user_id: str):
        # profile lookup by the requesting identity; 404 when the user has no student profile
        def load() -> StudentSnapshot:
            student = records.get_student_by_user_id(user_id)
            return records.snapshot(student.id)
        return eligibility_for(load, user_id)

    @app.get("/grants/pending", response_model=List[ApplicationOut])
    def pending_applications():
        try:
            return [
                ApplicationOut(
                    id=a.id,
                    student_id=a.student_id,
                    grant_type=a.grant_type,
                    academic_year=a.academic_year,
                    status=a.status,
                )
                for a in records.list_applications("pending")
            ]
        except Exception as e:
            logger.exception("Error fetching pending grants")
            raise HTTPException(status_code=500, detail="Failed to fetch pending grant applications") from e

    @app.get("/grants/committee/stats")
    def stats() -> Dict[str, int]:
        try:
            return committee_stats(records.list_applications(), settings.CURRENT_ACADEMIC_YEAR)
        except Exception as e:
            logger.exception("Error fetching grant committee stats")
            raise HTTPException(status_code=500, detail="Failed to fetch grant committee stats") from e

    return app


def build_default_app() -> FastAPI:
    root = settings.DATA_DIR
    logger.info("Loading grants and records from %s", root)
    store = InMemoryRecordStore.from_json(load_records(root))
    return create_app(load_grants(root), store)


app = build_default_app()


if __name__ == "__main__":
    uvicorn.run("unimonitor.app:app", host=settings.HOST, port=settings.PORT, reload=settings.APP_ENV == "development")
