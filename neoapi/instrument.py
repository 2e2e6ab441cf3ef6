import inspect
import logging
from functools import wraps
from typing import Any, Callable, TypeVar

from neoapi.models import LLMOutput

F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)


def instrument(func: F, track: Callable[[LLMOutput], Any], **fields: Any) -> F:
    """
    Wrap a function so its return value is tracked as an LLM output event.

    Args:
      func (callable): The function to wrap, sync or async.
      track (callable): Receives the event, e.g. `client.track`.
      **fields: Event fields for LLMOutput.from_result (project, group,
        analysis_slug, need_analysis_response, format_json_output,
        metadata, save_text).

    Returns:
      callable: A wrapper of the same kind as `func` returning its result
      unchanged.

    Exceptions raised by `func` are logged and re-raised; nothing is
    tracked for that call.
    """

    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_inner(*args, **kwargs):
            try:
                result = await func(*args, **kwargs)
            except Exception:
                logger.error("Error in function '%s'", func.__name__, exc_info=True)
                raise

            outcome = track(LLMOutput.from_result(result, **fields))
            if inspect.isawaitable(outcome):
                await outcome
            return result

        return async_inner  # type: ignore

    @wraps(func)
    def inner(*args, **kwargs):
        try:
            result = func(*args, **kwargs)
        except Exception:
            logger.error("Error in function '%s'", func.__name__, exc_info=True)
            raise

        track(LLMOutput.from_result(result, **fields))
        return result

    return inner  # type: ignore


def track_llm_output(client: Any, **fields: Any) -> Callable[[F], F]:
    """
    Decorator form of `instrument` bound to a client's `track`.

    Example:
      @track_llm_output(client, project="chatbot", group="answers")
      def answer(question):
          return llm.complete(question)
    """

    def decorator(func: F) -> F:
        return instrument(func, client.track, **fields)

    return decorator
