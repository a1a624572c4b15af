#!/usr/bin/env python3
"""
Calibration Dashboard Web Server - team evaluations API with local LLM chat
"""

import logging
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request, send_file
from flask_cors import CORS

from calibration import config
from calibration.chat.reference_data import (
    build_cards,
    build_employee_card,
    canned_reply,
    default_sample_team,
    find_employee_keys,
)
from calibration.evaluations.aggregation import (
    calculate_team_summary,
    get_available_years,
    get_current_manager,
    get_employee_detail,
    get_manager_and_team,
    get_team_members,
)
from calibration.evaluations.colors import performance_color
from calibration.evaluations.historic import (
    export_historic_workbook,
    get_employee_historic_data,
    parse_sort_column,
    sort_metric_rows,
)
from calibration.evaluations.models import TeamMember
from calibration.evaluations.store import EvaluationStore
from calibration.llm.chat_relay import (
    ChatRelayError,
    ChatRequestError,
    relay_chat,
    request_completion,
    validate_turns,
)

# Flask setup
app = Flask(__name__)
CORS(app)

# Set up logging
logging.basicConfig(
    level=logging.DEBUG if config.DEBUG else logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

# Global state
_store: Optional[EvaluationStore] = None
SAMPLE_TEAM = default_sample_team()


def get_store() -> EvaluationStore:
    global _store
    if _store is None:
        _store = EvaluationStore()
    return _store


class BadRequest(ValueError):
    pass


@app.errorhandler(BadRequest)
def handle_bad_request(e):
    return jsonify({"error": str(e)}), 400


def _manager_id() -> str:
    manager_id = request.args.get('manager_id') or request.headers.get('X-Manager-Id')
    if not manager_id:
        raise BadRequest("Missing manager_id")
    return manager_id


def _year() -> int:
    raw = request.args.get('year')
    if raw is None or raw == '':
        return config.DEFAULT_EVALUATION_YEAR
    try:
        return int(raw)
    except ValueError:
        raise BadRequest(f"Invalid year: {raw}") from None


def _member_payload(member: TeamMember) -> Dict[str, Any]:
    payload = member.to_dict()
    evaluation = member.evaluation
    payload["colors"] = {
        "potential": performance_color(evaluation.general_potential if evaluation else None).to_dict(),
        "competencies": performance_color(evaluation.competencies_avg_score if evaluation else None).to_dict(),
        "direct_manager": performance_color(evaluation.direct_manager_score if evaluation else None).to_dict(),
    }
    return payload


# ============================================================
# HEALTH / YEARS
# ============================================================

@app.route('/health-check', methods=['GET'])
def health_check():
    return jsonify({"status": "ok"})


@app.route('/api/years', methods=['GET'])
def list_years():
    return jsonify({"years": get_available_years(get_store())})


# ============================================================
# TEAM
# ============================================================

@app.route('/api/team', methods=['GET'])
def team_overview():
    """
    Direct reports of the calling manager for one year, with summary cards
    """
    manager_id = _manager_id()
    year = _year()
    store = get_store()

    manager = get_current_manager(store, manager_id)
    members = get_team_members(store, manager_id, year)
    summary = calculate_team_summary(members)

    return jsonify({
        "manager": manager.to_dict() if manager else None,
        "year": year,
        "members": [_member_payload(m) for m in members],
        "summary": summary.to_dict(),
        "summary_colors": {
            "average_potential": performance_color(summary.average_potential).to_dict(),
            "average_competencies": performance_color(summary.average_competencies).to_dict(),
        },
    })


@app.route('/api/team/selector', methods=['GET'])
def team_selector():
    people = get_manager_and_team(get_store(), _manager_id())
    return jsonify({"employees": [e.to_dict() | {"full_name": e.full_name} for e in people]})


# ============================================================
# EMPLOYEE DETAIL / HISTORIC
# ============================================================

@app.route('/api/employees/<employee_id>', methods=['GET'])
def employee_detail(employee_id):
    detail = get_employee_detail(get_store(), employee_id, _year())
    if detail is None:
        return jsonify({"error": "Employee not found"}), 404

    payload = detail.to_dict()
    for competency in payload["competencies"]:
        competency["color"] = performance_color(competency["score"]).to_dict()
    return jsonify(payload)


@app.route('/api/employees/<employee_id>/historic', methods=['GET'])
def employee_historic(employee_id):
    try:
        column = parse_sort_column(request.args.get('sort'))
        direction = request.args.get('direction') or None
        if column is not None and direction is None:
            direction = 'asc'
        data = get_employee_historic_data(get_store(), employee_id)
        if data is None:
            return jsonify({"error": "Employee not found"}), 404
        rows = sort_metric_rows(data.metrics, column, direction)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    payload = data.to_dict()
    payload["metrics"] = [r.to_dict() for r in rows]
    payload["sort"] = {"column": column, "direction": direction if column is not None else None}
    return jsonify(payload)


@app.route('/api/employees/<employee_id>/historic/export', methods=['GET'])
def export_historic(employee_id):
    data = get_employee_historic_data(get_store(), employee_id)
    if data is None:
        return jsonify({"error": "Employee not found"}), 404

    path = export_historic_workbook(data)
    logger.info("Exported historic workbook for %s to %s", employee_id, path)
    return send_file(path, as_attachment=True, download_name=path.name)


# ============================================================
# CHAT
# ============================================================

def _last_user_message(turns: List[Dict[str, str]]) -> str:
    for turn in reversed(turns):
        if turn["role"] == "user":
            return turn["content"]
    return ""


@app.route('/api/chat', methods=['POST'])
def chat():
    """
    Relay the conversation to the local LLM. With USE_MOCK_LLM on, an
    unreachable endpoint is answered from the sample team instead.
    """
    data = request.get_json(silent=True) or {}
    try:
        turns = validate_turns(data.get('messages'))
    except ChatRequestError as e:
        return jsonify({"error": str(e)}), 400

    if not config.USE_MOCK_LLM:
        return jsonify({"content": relay_chat(turns)})

    try:
        return jsonify({"content": request_completion(turns)})
    except ChatRelayError as e:
        logger.warning("LLM unreachable, answering offline: %s", e)
        reply = canned_reply(_last_user_message(turns), SAMPLE_TEAM)
        payload = reply.to_dict()
        payload["cards"] = build_cards(reply.employee_keys, SAMPLE_TEAM)
        payload["offline"] = True
        return jsonify(payload)


@app.route('/api/chat/sample-team', methods=['GET'])
def chat_sample_team():
    return jsonify({"employees": [build_employee_card(e) for e in SAMPLE_TEAM.employees]})


@app.route('/api/chat/cards', methods=['GET'])
def chat_cards():
    keys = find_employee_keys(request.args.get('message', ''), SAMPLE_TEAM)
    return jsonify({"employee_keys": keys, "cards": build_cards(keys, SAMPLE_TEAM)})


if __name__ == '__main__':
    logger.info("=" * 60)
    logger.info("Calibration Dashboard Server Starting")
    logger.info("Database: %s", config.DB_PATH)
    logger.info("LLM endpoint: %s (model %s)", config.LLM_CHAT_URL, config.LLM_MODEL)
    logger.info("Offline chat fallback: %s", "on" if config.USE_MOCK_LLM else "off")
    logger.info("Server running at: http://localhost:%s", config.PORT)
    logger.info("=" * 60)

    # No auto-reloader; threaded for concurrent dashboard requests.
    app.run(host='0.0.0.0', port=config.PORT, debug=False, use_reloader=False, threaded=True)
