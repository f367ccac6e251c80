"""FastAPI backend for Spiral Staircase Studio.
Runs the calculator, compliance checks and repair loop server-side and serves
placements plus the summary as JSON. Decisions for the repair checkpoints are
sent up front as a scripted list, since a request cannot stop to ask.
"""
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from diameter_catalog import DEFAULT_CATALOG
from repair_loop import Decision, InvalidDecisionError, RepairLoop, scripted
from spiral_calculator import Direction, derive
from staircase_spiral import DEFAULT_CONFIG, TAG_STYLE, design_staircase, spec_from_config
from validators.building_regs import check_soft, validate

logger = logging.getLogger(__name__)

app = FastAPI()


class SpiralConfig(BaseModel):
    center_pole_diameter: float = Field(DEFAULT_CONFIG["center_pole_diameter"], gt=0)
    overall_height: float = Field(DEFAULT_CONFIG["overall_height"], gt=0)
    outside_diameter: float = Field(DEFAULT_CONFIG["outside_diameter"], gt=0)
    total_rotation: float = Field(DEFAULT_CONFIG["total_rotation"], gt=0)
    direction: Direction = Direction(DEFAULT_CONFIG["direction"])
    tread_thickness: float = Field(DEFAULT_CONFIG["tread_thickness"], gt=0)
    landing_width: float = Field(DEFAULT_CONFIG["landing_width"], gt=0)
    arc_segments: int = Field(DEFAULT_CONFIG["arc_segments"], ge=1, le=64)
    snap_center_pole: bool = False


class RepairRequest(BaseModel):
    config: SpiralConfig = Field(default_factory=SpiralConfig)
    # Answers in checkpoint order; once exhausted `default_decision` (or ignore) applies
    decisions: list[Decision] = Field(default_factory=list)
    default_decision: Optional[Decision] = None


def _config_dict(config: SpiralConfig) -> dict:
    data = config.model_dump()
    data["direction"] = config.direction.value
    return data


@app.get("/defaults")
async def get_defaults():
    return {
        "config": DEFAULT_CONFIG,
        "stock_diameters": [{"diameter": d, "label": label} for d, label in DEFAULT_CATALOG.entries()],
        "styles": TAG_STYLE,
    }


@app.post("/validate")
async def validate_staircase(config: SpiralConfig):
    """First-pass gate. Fatal range violations come back as data with ok=false;
    on success the clearance violations as they stand are listed too."""
    try:
        spec = spec_from_config(_config_dict(config))
        result = validate(spec)
        logger.info(f"[API] Validate: ok={result.ok}, {len(result.violations)} fatal violation(s)")
        body = result.model_dump(mode="json")
        body["clearances"] = []
        if result.ok:
            body["clearances"] = [v.model_dump(mode="json") for v in check_soft(spec, result.derived)]
        return JSONResponse(body)
    except Exception as e:
        logger.exception(f"[API] Validate error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/repair")
async def repair_staircase(req: RepairRequest):
    try:
        spec = spec_from_config(_config_dict(req.config))
        loop = RepairLoop(scripted(req.decisions, req.default_decision),
                          snap_center_pole=req.config.snap_center_pole)
        outcome = loop.run(spec)
        logger.info(f"[API] Repair finished: {outcome.status.value}, "
                    f"{len(outcome.actions)} fix(es), {len(outcome.ignored)} ignored")
        body = outcome.model_dump(mode="json")
        body["transitions"] = [s.value for s in loop.transitions]
        return JSONResponse(body)
    except InvalidDecisionError as e:
        logger.warning(f"[API] Rejected decision: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"[API] Repair error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/geometry")
async def generate_geometry(req: RepairRequest):
    """Repair, then lay out the stair.

    Every placement carries its 2D `outline` (arcs split into
    `arc_segments` straight runs) so a frontend can extrude it directly.
    """
    try:
        config = _config_dict(req.config)
        logger.info("[API] Building spiral staircase...")
        design = design_staircase(config, scripted(req.decisions, req.default_decision),
                                  snap_center_pole=req.config.snap_center_pole)
        placements = []
        for p in design.placements:
            item = p.model_dump(mode="json")
            item["outline"] = [list(pt) for pt in p.outline(req.config.arc_segments)]
            placements.append(item)

        return JSONResponse({
            "outcome": design.outcome.model_dump(mode="json"),
            "placements": placements,
            "summary": design.summary.model_dump(mode="json") if design.summary else None,
            "styles": TAG_STYLE,
        })
    except InvalidDecisionError as e:
        logger.warning(f"[API] Rejected decision: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"[API] Geometry error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/derive")
async def derive_parameters(config: SpiralConfig):
    """Raw derived values, no checks applied."""
    spec = spec_from_config(_config_dict(config))
    return JSONResponse(derive(spec).model_dump(mode="json"))


if __name__ == "__main__":
    import uvicorn
    from log_setup import setup_logging

    setup_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)
