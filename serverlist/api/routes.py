from flask import Blueprint, current_app, jsonify, request
import logging

from serverlist.api.auth import session_from_token
from serverlist.errors import CreateInviteError, InvalidSession, ServerNotFound
from serverlist.services.invites import create_invite_for_user

logger = logging.getLogger(__name__)

# Create blueprints
rpc_bp = Blueprint('rpc', __name__)

def _bearer_token():
    """Return the session token from the Authorization header, if any."""
    header = request.headers.get('Authorization', '').strip()
    if header.lower().startswith('bearer '):
        header = header[7:].strip()
    return header or None

async def handle_create_invite(sessions, invite_api, guild_id: str, token: str = None) -> str:
    """CreateInvite query: optional session lookup, then invite creation."""
    user_id = None
    if token:
        api_session = await session_from_token(sessions, token)
        if api_session is None:
            raise InvalidSession("Invalid or expired session")
        if api_session.target_type == 'user':
            user_id = api_session.target_id

    return await create_invite_for_user(sessions, invite_api, guild_id, user_id)

@rpc_bp.route('/create-invite', methods=['POST'])
def create_invite():
    """Create an invite for a listed server."""
    data = request.get_json(silent=True) or {}
    guild_id = str(data.get('guild_id') or '').strip()

    if not guild_id.isdigit():
        return jsonify({'error': {'code': 'BadRequest', 'message': 'guild_id is required'}}), 400

    runner = current_app.config['COROUTINE_RUNNER']
    try:
        url = runner(handle_create_invite(
            current_app.config['SESSION_FACTORY'],
            current_app.config['INVITE_API'],
            guild_id,
            _bearer_token(),
        ))
    except InvalidSession as e:
        return jsonify({'error': {'code': 'InvalidSession', 'message': str(e)}}), 401
    except ServerNotFound as e:
        return jsonify({'error': {'code': e.code, 'message': e.message}}), 404
    except CreateInviteError as e:
        return jsonify({'error': {'code': e.code, 'message': e.message}}), 400
    except Exception as e:
        logger.error(f"Failed to create invite for guild {guild_id}: {e}")
        return jsonify({'error': {'code': 'Generic', 'message': 'Failed to create invite'}}), 500

    logger.info(f"Created invite for guild {guild_id}")
    return jsonify({'invite': {'url': url}})
