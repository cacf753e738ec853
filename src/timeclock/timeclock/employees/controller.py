from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..container import Container
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Actor

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/nfc-cards", methods=["POST"], endpoint="api_register_card")
    def api_register_card():
        actor = Actor.from_session(session)
        if actor is None:
            return jsonify({"error": "Unauthorized"}), 401

        data = request.get_json(silent=True) or {}
        try:
            card = container.card_service.register_card(
                actor,
                uid=data.get("uid", ""),
                employee_id=data.get("employeeId", ""),
            )
        except AuthorizationError as e:
            return jsonify({"error": str(e)}), 401
        except (ValidationError, NotFoundError) as e:
            return jsonify({"error": str(e)}), 400
        except Exception:
            logger.exception("Error registering NFC card")
            return jsonify({"error": "Failed to register NFC card"}), 500

        return (
            jsonify(
                {
                    "success": True,
                    "card": {
                        "id": card.card_id,
                        "uid": card.uid,
                        "employeeId": card.employee_id,
                        "registeredAt": card.registered_at.isoformat(),
                    },
                }
            ),
            201,
        )

    @app.route("/api/nfc-cards/<card_id>/deactivate", methods=["POST"], endpoint="api_deactivate_card")
    def api_deactivate_card(card_id: str):
        actor = Actor.from_session(session)
        if actor is None:
            return jsonify({"error": "Unauthorized"}), 401

        try:
            container.card_service.deactivate_card(actor, card_id=card_id)
        except AuthorizationError as e:
            return jsonify({"error": str(e)}), 401
        except NotFoundError as e:
            return jsonify({"error": str(e)}), 404
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except Exception:
            logger.exception("Error deactivating NFC card %s", card_id)
            return jsonify({"error": "Failed to deactivate NFC card"}), 500

        return jsonify({"success": True}), 200
