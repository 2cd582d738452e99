class SteamBaseUrls:
    API_URL = "https://api.steampowered.com"
    COMMUNITY_URL = "https://steamcommunity.com"


class SteamAuthApiUrls:
    GET_PASSWORD_RSA_PUBLIC_KEY = "/IAuthenticationService/GetPasswordRSAPublicKey/v1/"
    BEGIN_AUTH_SESSION_VIA_CREDENTIALS = "/IAuthenticationService/BeginAuthSessionViaCredentials/v1/"
    UPDATE_AUTH_SESSION_WITH_GUARD_CODE = "/IAuthenticationService/UpdateAuthSessionWithSteamGuardCode/v1/"
    POLL_AUTH_SESSION_STATUS = "/IAuthenticationService/PollAuthSessionStatus/v1/"
    GENERATE_ACCESS_TOKEN_FOR_APP = "/IAuthenticationService/GenerateAccessTokenForApp/v1/"
    QUERY_TIME = "/ITwoFactorService/QueryTime/v0001"
