class DetectionConfig:
    # 정규화 / shingle 설정
    SHINGLE_SIZE = 3               # char shingle 크기 (k)
    NON_ALNUM_PATTERN = r"[^\w\s]|_"
    WHITESPACE_PATTERN = r"\s+"

    # MinHash 해시 패밀리 설정
    NUM_HASH_FUNCTIONS = 128       # 64면 속도 우선, 128 이상이면 정확도 우선
    MERSENNE_PRIME = 2**31 - 1     # h(x) = (a*x + b) mod P
    HASH_A_MAX = 1_000_000         # a ∈ [1, 10^6]
    HASH_B_MAX = 1_000_000         # b ∈ [0, 10^6)
    SIGNATURE_SENTINEL = MERSENNE_PRIME  # 빈 shingle 집합의 초기값 (모든 해시값보다 큼)

    # 임계값
    MINHASH_THRESHOLD = 0.7
    LEVENSHTEIN_THRESHOLD = 0.8

    # 체크포인트 간격 (비교 비용에 따라 다르게)
    MINHASH_SIGNATURE_CHECKPOINT = 100
    MINHASH_COMPARE_CHECKPOINT = 1000
    LEVENSHTEIN_COMPARE_CHECKPOINT = 250

    # 진행률 구간 (시작, 끝)
    MINHASH_SIGNATURE_RANGE = (10, 40)
    MINHASH_COMPARE_RANGE = (40, 90)
    LEVENSHTEIN_PREPARE_PROGRESS = 5
    LEVENSHTEIN_COMPARE_RANGE = (10, 90)

    # 결과 설정
    RESULT_LIMIT = 50              # duplicates 목록 최대 길이

    # 알고리즘 표시 이름
    MINHASH_NAME = "MinHash (Jaccard Similarity)"
    LEVENSHTEIN_NAME = "Levenshtein Distance"

    # 호출자 측 제한
    MAX_RECORDS = 1000
    WORKER_TIMEOUT_SECONDS = 23.0
    WORKER_START_METHOD = "spawn"
    QUEUE_POLL_SECONDS = 0.1

    # 출력 설정
    DEFAULT_OUTPUT_DIR = "./output"
    DUPLICATES_FILE = "{algorithm}_duplicates.parquet"
    SUMMARY_FILE = "summary.json"
    COMPRESSION = "snappy"
