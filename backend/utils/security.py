from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from repositories.auth import UserRepository




security = HTTPBearer()

async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Obter o perfil autenticado pelo token de sessão"""
    session_token = credentials.credentials
    
    user = await UserRepository.get_user_by_session_token(session_token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de sessão inválido ou expirado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    return user
