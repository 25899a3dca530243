from fastapi import APIRouter, Depends

from ..gemini_client import GeminiClient
from ..schemas import DistractorRequest, DistractorResponse, SuggestionRequest, SuggestionResponse
from ..suggestions import ClientFactory, generate_distractors, generate_question_suggestions

router = APIRouter(prefix="/api/forms", tags=["suggestions"])


def get_client_factory() -> ClientFactory:
	return GeminiClient


@router.post("/generate-distractors", response_model=DistractorResponse)
async def distractors(req: DistractorRequest, client_factory: ClientFactory = Depends(get_client_factory)):
	result = await generate_distractors(req.text, req.correct_answers, client_factory=client_factory)
	return DistractorResponse(distractors=result)


@router.post("/question-suggestions", response_model=SuggestionResponse)
async def question_suggestions(req: SuggestionRequest, client_factory: ClientFactory = Depends(get_client_factory)):
	result = await generate_question_suggestions(req.question_text, client_factory=client_factory)
	return SuggestionResponse(suggestions=result)
