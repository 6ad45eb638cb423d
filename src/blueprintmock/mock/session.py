"""
blueprintmock Interactive Session

Rendezvous between HTTP requests that need a decision and the single
control client connected over a WebSocket.

Each request that has several candidate responses submits a Question and
waits for its Answer. Questions are keyed by a generated id, so an Answer
only ever completes the request that asked for it. Waits are bounded by
answer_timeout; on expiry the caller gets None and serves its default.
"""

import asyncio
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple

from fastapi import WebSocket, WebSocketDisconnect

from ..common import safe_json_parse

# Close code sent to a second control client while one is connected
CLIENT_BUSY_CLOSE_CODE = 4409


@dataclass
class Question:
    """Candidate responses offered to the control client for one request."""

    id: str
    answers: Dict[str, str]
    method: str = ""
    uri: str = ""
    asked_at: str = field(default_factory=lambda: datetime.now().isoformat())
    in_flight: bool = False
    future: Optional[asyncio.Future] = field(default=None, repr=False, compare=False)

    def to_message(self) -> Dict[str, Any]:
        """Wire format sent to the control client."""
        return {
            'id': self.id,
            'method': self.method,
            'uri': self.uri,
            'answers': self.answers
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            **self.to_message(),
            'asked_at': self.asked_at,
            'in_flight': self.in_flight
        }


class InteractiveSession:
    """
    Process-wide question/answer broker.

    Example:
        session = InteractiveSession(answer_timeout=30.0)

        # In a request handler
        answer = await session.ask({'200': '{"ok":true}', '404': '{"err":true}'})

        # In the WebSocket endpoint
        await session.serve(websocket)
    """

    def __init__(self, answer_timeout: Optional[float] = 30.0):
        """
        Initialize session.

        Args:
            answer_timeout: Seconds a request waits for an answer (None waits forever)
        """
        self.answer_timeout = answer_timeout
        self.questions: Dict[str, Question] = {}
        self.client_connected = False

        self.asked = 0
        self.answered = 0
        self.timeouts = 0

        # Ids waiting to be offered, oldest first
        self._waiting: "OrderedDict[str, None]" = OrderedDict()
        self._offered = asyncio.Event()
        self.logger = logging.getLogger("blueprintmock.session")

    async def ask(self, answers: Dict[str, str], method: str = "", uri: str = "") -> Optional[str]:
        """
        Submit a question and wait for its answer.

        Args:
            answers: Mapping of variant name to variant body
            method: HTTP method of the waiting request
            uri: Path of the waiting request

        Returns:
            Answer text from the control client, or None on timeout
        """
        loop = asyncio.get_running_loop()
        question = Question(
            id=uuid.uuid4().hex,
            answers=dict(answers),
            method=method,
            uri=uri,
            future=loop.create_future()
        )

        self.questions[question.id] = question
        self.asked += 1
        self._enqueue(question.id)
        self.logger.info(f"Asking question {question.id} for {method} {uri}")

        try:
            if self.answer_timeout is None:
                answer = await question.future
            else:
                answer = await asyncio.wait_for(question.future, timeout=self.answer_timeout)
        except asyncio.TimeoutError:
            self.timeouts += 1
            self.logger.warning(
                f"No answer for {method} {uri} within {self.answer_timeout}s, serving the default response"
            )
            return None
        finally:
            self.questions.pop(question.id, None)
            self._waiting.pop(question.id, None)

        self.answered += 1
        self.logger.info(f"Question {question.id} answered with {answer!r}")
        return answer

    async def next_question(self) -> Question:
        """Wait for the oldest question nobody is handling and claim it."""
        while True:
            while self._waiting:
                question_id, _ = self._waiting.popitem(last=False)
                question = self.questions.get(question_id)
                if question is None or question.in_flight or question.future.done():
                    continue
                question.in_flight = True
                return question

            self._offered.clear()
            await self._offered.wait()

    def resolve(self, question_id: str, answer: str) -> bool:
        """
        Deliver an answer to the request that asked the question.

        Returns:
            False if the question is unknown or already expired
        """
        question = self.questions.get(question_id)
        if question is None or question.future.done():
            self.logger.warning(f"Dropping answer {answer!r} for unknown or expired question {question_id}")
            return False

        question.future.set_result(answer)
        return True

    def release(self, question_id: str):
        """Put an unanswered question back in line for the next client."""
        question = self.questions.get(question_id)
        if question is None or question.future.done():
            return

        question.in_flight = False
        self._enqueue(question_id)
        self.logger.debug(f"Released question {question_id}")

    def _enqueue(self, question_id: str):
        self._waiting[question_id] = None
        self._offered.set()

    def attach(self) -> bool:
        """Claim the control connection. False if another client holds it."""
        if self.client_connected:
            return False
        self.client_connected = True
        return True

    def detach(self):
        self.client_connected = False

    def pending(self) -> List[Dict[str, Any]]:
        """Snapshot of questions still waiting for an answer."""
        return [q.to_dict() for q in self.questions.values()]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'client_connected': self.client_connected,
            'answer_timeout': self.answer_timeout,
            'pending': len(self.questions),
            'queued': len(self._waiting),
            'asked': self.asked,
            'answered': self.answered,
            'timeouts': self.timeouts
        }

    @staticmethod
    def parse_answer(message: str, current_id: str) -> Tuple[str, str]:
        """
        Read a control client message.

        Plain text answers the question just sent. A JSON object
        {"id": ..., "answer": ...} answers the question with that id.
        """
        data = safe_json_parse(message)
        if isinstance(data, dict) and 'answer' in data:
            return str(data.get('id') or current_id), str(data.get('answer') or '')
        return current_id, message

    async def serve(self, websocket: WebSocket):
        """
        Run the client loop for one control connection.

        Sends each pending question, reads one answer, and hands it to the
        waiting request. A question left unanswered by a disconnect goes back
        in line.
        """
        await websocket.accept()

        if not self.attach():
            self.logger.warning("Refusing control client: another client is connected")
            await websocket.close(code=CLIENT_BUSY_CLOSE_CODE, reason="Another control client is connected")
            return

        self.logger.info("Control client connected")
        question = None
        try:
            while True:
                self.logger.debug("Standing by for questions")
                question = await self._wait_for_question(websocket)
                if question is None:
                    break

                await websocket.send_json(question.to_message())
                message = await self._receive_text(websocket)

                question_id, answer = self.parse_answer(message, question.id)
                self.resolve(question_id, answer)
                if question_id != question.id:
                    self.release(question.id)
                question = None
        except WebSocketDisconnect:
            pass
        except (RuntimeError, OSError) as e:
            # Sending to a socket the client already dropped
            self.logger.warning(f"Control connection failed: {e}")
        finally:
            if question is not None:
                self.release(question.id)
            self.detach()
            self.logger.info("Control client disconnected")

    async def _wait_for_question(self, websocket: WebSocket) -> Optional[Question]:
        """Wait for the next question, returning None if the client leaves first."""
        question_task = asyncio.ensure_future(self.next_question())
        receive_task = None
        try:
            while True:
                receive_task = asyncio.ensure_future(websocket.receive())
                done, _ = await asyncio.wait(
                    {question_task, receive_task},
                    return_when=asyncio.FIRST_COMPLETED
                )

                if receive_task in done:
                    message = receive_task.result()
                    if message['type'] == 'websocket.disconnect':
                        if question_task.done():
                            self.release(question_task.result().id)
                        return None
                    if question_task not in done:
                        self.logger.debug("Ignoring control message with no question pending")
                        continue
                    self.logger.debug("Ignoring control message received while offering a question")

                return question_task.result()
        finally:
            for task in (question_task, receive_task):
                if task is not None and not task.done():
                    task.cancel()

    @staticmethod
    async def _receive_text(websocket: WebSocket) -> str:
        message = await websocket.receive()
        if message['type'] == 'websocket.disconnect':
            raise WebSocketDisconnect(message.get('code', 1000))

        text = message.get('text')
        if text is None:
            text = (message.get('bytes') or b'').decode('utf-8', errors='replace')
        return text
