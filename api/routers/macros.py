"""
Router: /macros/{scope}[/{name}]
Zakresy to dowolne identyfikatory, np. "user:42" albo "channel:7".
"""
from fastapi import APIRouter, Depends, HTTPException

from adapters.macros.expander import normalize_macro_name
from api.dependencies import get_commands
from api.schemas import MacroBody, MacroResponse

router = APIRouter(prefix="/macros", tags=["macros"])


@router.get("/{scope}", response_model=dict[str, str])
async def list_macros(scope: str, commands=Depends(get_commands)) -> dict[str, str]:
    return commands.list_macros(scope)


@router.get("/{scope}/{name}", response_model=MacroResponse)
async def get_macro(scope: str, name: str, commands=Depends(get_commands)) -> MacroResponse:
    notation = commands.get_macro(scope, name)
    if notation is None:
        raise HTTPException(status_code=404, detail=f"Macro @{name} not found in {scope}")
    return MacroResponse(scope=scope, name=normalize_macro_name(name), notation=notation)


@router.put("/{scope}/{name}", response_model=MacroResponse)
async def set_macro(
    scope: str,
    name: str,
    body: MacroBody,
    commands=Depends(get_commands),
) -> MacroResponse:
    key = commands.set_macro(scope, name, body.notation)
    return MacroResponse(scope=scope, name=key, notation=body.notation.strip())


@router.delete("/{scope}/{name}", status_code=204)
async def delete_macro(scope: str, name: str, commands=Depends(get_commands)) -> None:
    if not commands.delete_macro(scope, name):
        raise HTTPException(status_code=404, detail=f"Macro @{name} not found in {scope}")
