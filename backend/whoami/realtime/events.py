"""Socket.IO event names shared by the handlers and the web client."""

# client -> server
ROOM_CREATE = "room:create"
ROOM_JOIN = "room:join"
ROOM_LEAVE = "room:leave"
GAME_START_ASSIGNMENT = "game:start_assignment"
ASSIGNMENT_SUBMIT = "assignment:submit"
GAME_START = "game:start"
QUESTION_ASK = "question:ask"
QUESTION_VOTE = "question:vote"
GUESS_SUBMIT = "guess:submit"
TURN_PASS = "turn:pass"
TURN_FORFEIT = "turn:forfeit"
REACTION_SEND = "reaction:send"
PING = "ping"

# server -> client
ROOM_STATE = "room:state"
ROOM_ERROR = "room:error"
GAME_ERROR = "game:error"
PLAYER_JOINED = "player:joined"
PLAYER_LEFT = "player:left"
GAME_PHASE = "game:phase"
TURN_STARTED = "turn:started"
TURN_TIMEOUT = "turn:timeout"
TURN_PASSED = "turn:passed"
QUESTION_ASKED = "question:asked"
QUESTION_VOTES = "question:votes"
GUESS_CORRECT = "guess:correct"
GUESS_WRONG = "guess:wrong"
PLAYER_FORFEITED = "player:forfeited"
REACTION_RECEIVED = "reaction:received"
GAME_FINISHED = "game:finished"
